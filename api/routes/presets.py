"""
Preset search and activation endpoints.

GET  /api/v1/presets                  → one page of matching presets
POST /api/v1/presets/{id}/activate    → play the preset's preview (202)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from api.database import get_library, get_state
from api.models import ActivationOut, PresetPage
from library.index import PresetLibrary
from library.loader import LibraryState
from utils.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/presets", tags=["presets"])

MAX_PAGE_SIZE = 500


@router.get("", response_model=PresetPage, summary="Search presets")
def list_presets(
    vendors: list[str] = Query([], description="Vendor names"),
    products: list[int] = Query([], description="Product IDs"),
    categories: list[int] = Query([], description="Category IDs"),
    modes: list[int] = Query([], description="Mode IDs"),
    banks: list[int] = Query([], description="Bank chain IDs"),
    query: str = Query("", description="Case-insensitive text matched against name or comment"),
    offset: int = Query(0, ge=0, description="Index of the first result"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    library: PresetLibrary = Depends(get_library),
) -> dict:
    """Return presets matching every non-empty facet filter and the text.

    Within a facet any selected value matches; across facets all must.
    Presets are in natural name order.
    """
    page = library.get_presets(
        vendors=vendors, products=products, categories=categories,
        modes=modes, banks=banks, query=query, offset=offset, limit=limit,
    )
    return {
        "results": [p.to_dict() for p in page.results],
        "total": page.total,
        "start": page.start,
        "end": page.end,
    }


@router.post("/{preset_id}/activate", status_code=202, response_model=ActivationOut,
             summary="Play a preset's preview")
def activate_preset(
    preset_id: int,
    library: PresetLibrary = Depends(get_library),
    state: LibraryState = Depends(get_state),
) -> dict:
    if library.get_preset(preset_id) is None:
        raise HTTPException(status_code=404, detail=f"Preset {preset_id} not found")
    preview = state.activate(preset_id)
    logger.info("Activated preset %d preview=%s", preset_id, preview)
    return {"id": preset_id, "preview": str(preview) if preview else None}
