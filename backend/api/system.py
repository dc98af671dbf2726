from fastapi import APIRouter, Request
import logging

from cutengine.filler_words import SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/")
def read_root():
    """Health check endpoint."""
    return {"message": "Cut Engine API", "languages": list(SUPPORTED_LANGUAGES)}


@router.get("/processes")
def get_active_processes(request: Request):
    """Number of encoder processes currently running."""
    registry = request.app.state.registry
    return {"active": registry.active_count(), "closing": registry.closing}
