"""
Planar joint-angle geometry for landmark triplets.

All functions take objects exposing ``x`` and ``y`` in normalized image
coordinates (y grows downward) and return degrees rounded to 0.1.
"""

import math

import numpy as np


def _round(angle: float) -> float:
    return round(float(angle), 1)


def angle_at(point_a, vertex, point_b) -> float:
    """
    Angle at ``vertex`` between the rays towards ``point_a`` and ``point_b``.

    Returns a value in [0, 180]. A zero-length ray (two landmarks on top
    of each other) yields 0.0.
    """
    v1 = np.array([point_a.x - vertex.x, point_a.y - vertex.y], dtype=float)
    v2 = np.array([point_b.x - vertex.x, point_b.y - vertex.y], dtype=float)

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    cos_angle = np.clip(np.dot(v1, v2) / (norm1 * norm2), -1.0, 1.0)
    return _round(np.degrees(np.arccos(cos_angle)))


def flexion_bearing_angle(point_a, vertex, point_b) -> float:
    """
    Angle between the bearings of ``vertex->point_a`` and ``vertex->point_b``.

    Each bearing is measured with ``atan2`` against the horizontal axis with
    the y sign inverted so that "up" is positive. Stays stable for the
    near-colinear torso/thigh configurations of a standing squat, where the
    dot-product formula loses precision.
    """
    bearing_a = math.atan2(-(point_a.y - vertex.y), point_a.x - vertex.x)
    bearing_b = math.atan2(-(point_b.y - vertex.y), point_b.x - vertex.x)

    difference = abs(math.degrees(bearing_a - bearing_b))
    if difference > 180:
        difference = 360 - difference

    return _round(difference)


def torso_inclination(
    shoulder,
    hip,
    signed: bool = False,
    vertical_reading: int = 90,
) -> float:
    """
    Inclination of the hip->shoulder segment.

    Args:
        shoulder: Shoulder landmark
        hip: Hip landmark
        signed: Negate the result when the shoulder sits below the hip
            (shoulder.y > hip.y), i.e. an inverted torso
        vertical_reading: Value reported for a perfectly vertical spine.
            90 computes ``atan2(|dy|, |dx|)``; 0 computes ``atan2(|dx|, |dy|)``.

    Returns:
        Angle in degrees within [0, 90], or [-90, 90] when signed
    """
    if vertical_reading not in (0, 90):
        raise ValueError(f"vertical_reading must be 0 or 90, got {vertical_reading}")

    delta_x = abs(shoulder.x - hip.x)
    delta_y = abs(shoulder.y - hip.y)

    if vertical_reading == 90:
        angle = math.degrees(math.atan2(delta_y, delta_x))
    else:
        angle = math.degrees(math.atan2(delta_x, delta_y))

    if signed and shoulder.y > hip.y:
        angle = -angle

    return _round(angle)
