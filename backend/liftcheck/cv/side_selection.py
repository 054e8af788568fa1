"""
Strategies for choosing which side of the body to measure.

Lifts are filmed in profile, so only one limb chain faces the camera.
Extractors ask a selector for "left" or "right" and read that chain
exclusively for the frame.
"""

from typing import List, Sequence

from liftcheck.cv.landmarks import LIMB_JOINTS, Landmark


class SideSelector:
    """Base class for side-selection strategies."""

    name: str = "base"

    def select(self, landmarks: List[Landmark], reference_joints: Sequence[str]) -> str:
        """
        Pick the side to measure.

        Args:
            landmarks: Full 33-point landmark set
            reference_joints: Joint names (keys of LIMB_JOINTS) the decision
                is based on, e.g. ("hip", "knee")

        Returns:
            "left" or "right"
        """
        raise NotImplementedError


class DepthDifferenceSideSelector(SideSelector):
    """
    Pick the chain whose reference joints have the smaller depth spread.

    A joint pair lying at similar depth is a proxy for a limb seen flat in
    profile. It is not an occlusion test. Ties go to the right side.
    """

    name = "depth_difference"

    def select(self, landmarks: List[Landmark], reference_joints: Sequence[str]) -> str:
        first, second = reference_joints[0], reference_joints[1]
        left_spread = abs(landmarks[LIMB_JOINTS[first][0]].z - landmarks[LIMB_JOINTS[second][0]].z)
        right_spread = abs(landmarks[LIMB_JOINTS[first][1]].z - landmarks[LIMB_JOINTS[second][1]].z)
        return "left" if left_spread < right_spread else "right"


class VisibilitySideSelector(SideSelector):
    """Pick the chain with the higher mean detector visibility."""

    name = "visibility"

    def select(self, landmarks: List[Landmark], reference_joints: Sequence[str]) -> str:
        left_conf = sum(landmarks[LIMB_JOINTS[j][0]].visibility for j in reference_joints)
        right_conf = sum(landmarks[LIMB_JOINTS[j][1]].visibility for j in reference_joints)
        return "left" if left_conf > right_conf else "right"


SIDE_SELECTORS = {
    DepthDifferenceSideSelector.name: DepthDifferenceSideSelector,
    VisibilitySideSelector.name: VisibilitySideSelector,
}


def create_side_selector(name: str = DepthDifferenceSideSelector.name) -> SideSelector:
    """Instantiate a selector by name."""
    if name not in SIDE_SELECTORS:
        raise ValueError(f"Unknown side selector '{name}'. Must be one of: {list(SIDE_SELECTORS)}")
    return SIDE_SELECTORS[name]()
