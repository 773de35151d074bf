"""
Library status endpoint.

GET /api/v1/status → readiness flags; clients poll it until ``loading`` is
false before issuing queries. Never answers 503.
"""

from fastapi import APIRouter, Depends

from api.database import get_state
from api.models import StatusOut
from library.loader import LibraryState

router = APIRouter(tags=["meta"])


@router.get("/status", response_model=StatusOut, summary="Library readiness")
def get_status(state: LibraryState = Depends(get_state)) -> dict:
    return {
        "db_found": state.db_found,
        "loading": state.loading,
        "db_path": str(state.db_path),
        "preset_count": len(state.library) if state.library is not None else None,
        "error": state.error,
    }
