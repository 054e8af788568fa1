"""API routes."""

from fastapi import APIRouter

from liftcheck.api import analysis

api_router = APIRouter()

api_router.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])
