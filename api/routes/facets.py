"""
Facet catalog endpoints.

GET /api/v1/vendors     ?products=&categories=&modes=&banks=
GET /api/v1/products    ?vendors=&categories=&modes=&banks=
GET /api/v1/categories  ?vendors=&products=&modes=&banks=
GET /api/v1/modes       ?vendors=&products=&categories=&banks=
GET /api/v1/banks       ?vendors=&products=&categories=&modes=

Each returns the values still reachable given the other facets' selections.
Filter parameters repeat for multiple values (``?products=3&products=7``).
A facet never filters itself, so its own parameter is not accepted.
"""

from fastapi import APIRouter, Depends, Query

from api.database import get_library
from api.models import BankOut, CategoryOut, ModeOut, ProductOut
from library.index import PresetLibrary

router = APIRouter(tags=["facets"])

_VENDORS = Query([], description="Vendor names")
_PRODUCTS = Query([], description="Product IDs")
_CATEGORIES = Query([], description="Category IDs")
_MODES = Query([], description="Mode IDs")
_BANKS = Query([], description="Bank chain IDs")


@router.get("/vendors", response_model=list[str], summary="List reachable vendors")
def list_vendors(
    products: list[int] = _PRODUCTS,
    categories: list[int] = _CATEGORIES,
    modes: list[int] = _MODES,
    banks: list[int] = _BANKS,
    library: PresetLibrary = Depends(get_library),
) -> list[str]:
    return library.get_vendors(products=products, categories=categories,
                               modes=modes, banks=banks)


@router.get("/products", response_model=list[ProductOut], summary="List reachable products")
def list_products(
    vendors: list[str] = _VENDORS,
    categories: list[int] = _CATEGORIES,
    modes: list[int] = _MODES,
    banks: list[int] = _BANKS,
    library: PresetLibrary = Depends(get_library),
) -> list[dict]:
    return [p.to_dict() for p in library.get_products(
        vendors=vendors, categories=categories, modes=modes, banks=banks)]


@router.get("/categories", response_model=list[CategoryOut],
            summary="List reachable categories")
def list_categories(
    vendors: list[str] = _VENDORS,
    products: list[int] = _PRODUCTS,
    modes: list[int] = _MODES,
    banks: list[int] = _BANKS,
    library: PresetLibrary = Depends(get_library),
) -> list[dict]:
    return [c.to_dict() for c in library.get_categories(
        vendors=vendors, products=products, modes=modes, banks=banks)]


@router.get("/modes", response_model=list[ModeOut], summary="List reachable modes")
def list_modes(
    vendors: list[str] = _VENDORS,
    products: list[int] = _PRODUCTS,
    categories: list[int] = _CATEGORIES,
    banks: list[int] = _BANKS,
    library: PresetLibrary = Depends(get_library),
) -> list[dict]:
    return [m.to_dict() for m in library.get_modes(
        vendors=vendors, products=products, categories=categories, banks=banks)]


@router.get("/banks", response_model=list[BankOut], summary="List reachable banks")
def list_banks(
    vendors: list[str] = _VENDORS,
    products: list[int] = _PRODUCTS,
    categories: list[int] = _CATEGORIES,
    modes: list[int] = _MODES,
    library: PresetLibrary = Depends(get_library),
) -> list[dict]:
    return [b.to_dict() for b in library.get_banks(
        vendors=vendors, products=products, categories=categories, modes=modes)]
