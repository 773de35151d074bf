"""
Library access for the API.

The preset library is loaded once into memory by a LibraryState attached to
the application (``app.state.library_state``). Routes depend on
``get_library``, which turns "not ready yet" into a friendly 503 instead of
a failure deep inside a query:

    loading           -> 503, Retry-After: 1
    database missing  -> 503
    load failed       -> 503 with the load error
"""

from fastapi import Depends, HTTPException, Request

from library.index import PresetLibrary
from library.loader import LibraryState

RETRY_AFTER_SECONDS = 1


def get_state(request: Request) -> LibraryState:
    """FastAPI dependency: the application's LibraryState, loading started."""
    state: LibraryState = request.app.state.library_state
    state.start()
    return state


def get_library(state: LibraryState = Depends(get_state)) -> PresetLibrary:
    """FastAPI dependency: the loaded PresetLibrary, or HTTP 503.

    Usage in a route::

        @router.get("/example")
        def example(library: PresetLibrary = Depends(get_library)):
            ...
    """
    if not state.db_found:
        raise HTTPException(
            status_code=503,
            detail=f"Database not found at '{state.db_path}'. "
                   "Is Komplete Kontrol installed? Set APP_DB_PATH to override.",
        )
    if state.loading:
        raise HTTPException(
            status_code=503,
            detail="Preset library is loading",
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )
    if state.library is None:
        raise HTTPException(
            status_code=503,
            detail=f"Preset library failed to load: {state.error}",
        )
    return state.library
