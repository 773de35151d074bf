"""In-memory preset library backed by the Komplete Kontrol browser database."""

from library.models import (
    NO_BANK,
    Bank,
    Category,
    Facet,
    FacetKey,
    Mode,
    PaginatedResult,
    Preset,
    Product,
    facet_key,
)
from library.index import PresetLibrary
from library.loader import LibraryLoadError, LibraryNotReady, LibraryState, load_library
from library.previews import resolve_preview_path

__all__ = [
    "NO_BANK",
    "Bank",
    "Category",
    "Facet",
    "FacetKey",
    "Mode",
    "PaginatedResult",
    "Preset",
    "Product",
    "facet_key",
    "PresetLibrary",
    "LibraryLoadError",
    "LibraryNotReady",
    "LibraryState",
    "load_library",
    "resolve_preview_path",
]
