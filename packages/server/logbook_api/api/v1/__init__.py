"""
API v1 Router

Every resource under /api/v1 is scoped to the calling user.
"""

from fastapi import APIRouter

from logbook_api import __version__

from . import establishments

router = APIRouter()

router.include_router(establishments.router, prefix="/establishments", tags=["Establishments"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": __version__,
        "endpoints": [
            "/establishments",
            "/establishments/{establishment_id}",
        ],
    }
