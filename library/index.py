"""
In-memory preset index and the queries the browser runs against it.

Filter semantics:
  - within one facet a preset matches if it carries ANY selected value;
  - across facets ALL facets with a non-empty selection must match;
  - an empty selection does not constrain.

Facet options for facet F are the values of F carried by at least one preset
matching every filter except F's own. With no other filters the full
catalog is returned, including values that no preset references.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Iterable, Mapping
from typing import Any

from library.models import (
    Bank,
    Category,
    Facet,
    FacetKey,
    Mode,
    NO_BANK,
    PaginatedResult,
    Preset,
    Product,
    facet_key,
)
from utils.strings import contains_casefold

logger = logging.getLogger(__name__)

FacetFilters = Mapping[Facet, Collection[FacetKey]]


def _preset_keys(facet: Facet, preset: Preset) -> Iterable[FacetKey]:
    if facet is Facet.VENDOR:
        return (preset.vendor,)
    if facet is Facet.PRODUCT:
        return (preset.product_id,)
    if facet is Facet.CATEGORY:
        return preset.categories
    if facet is Facet.MODE:
        return preset.modes
    return (preset.bank,) if preset.bank != NO_BANK else ()


class PresetLibrary:
    """Immutable, query-only view of a loaded preset database.

    Catalog sequences are expected in display order already; presets are
    kept in the order given.
    """

    def __init__(
        self,
        vendors: Iterable[str],
        products: Iterable[Product],
        categories: Iterable[Category],
        modes: Iterable[Mode],
        banks: Iterable[Bank],
        presets: Iterable[Preset],
    ) -> None:
        self._catalogs: dict[Facet, tuple[Any, ...]] = {
            Facet.VENDOR: tuple(vendors),
            Facet.PRODUCT: tuple(products),
            Facet.CATEGORY: tuple(categories),
            Facet.MODE: tuple(modes),
            Facet.BANK: tuple(banks),
        }
        self._presets: dict[int, Preset] = {p.id: p for p in presets}
        self._products: dict[int, Product] = {
            p.id: p for p in self._catalogs[Facet.PRODUCT]
        }

        # facet -> value key -> ids of presets carrying that value
        index: dict[Facet, dict[FacetKey, set[int]]] = {
            f: defaultdict(set) for f in Facet
        }
        for preset in self._presets.values():
            for facet in Facet:
                for key in _preset_keys(facet, preset):
                    index[facet][key].add(preset.id)
        self._index: dict[Facet, dict[FacetKey, frozenset[int]]] = {
            f: {k: frozenset(ids) for k, ids in by_key.items()}
            for f, by_key in index.items()
        }

    # ── lookups ───────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._presets)

    def catalog(self, facet: Facet) -> tuple[Any, ...]:
        """Full, unfiltered catalog of *facet* in display order."""
        return self._catalogs[Facet(facet)]

    def get_preset(self, preset_id: int) -> Preset | None:
        return self._presets.get(preset_id)

    def get_product(self, product_id: int) -> Product | None:
        return self._products.get(product_id)

    # ── filtering ─────────────────────────────────────────────────────────

    def matching_ids(
        self, filters: FacetFilters, exclude: Facet | None = None
    ) -> frozenset[int] | None:
        """Return ids of presets matching *filters*, ignoring *exclude*.

        Returns None when no facet constrains the result (everything
        matches), which lets callers skip set work on the common path.
        """
        candidates: frozenset[int] | None = None
        for facet, selected in filters.items():
            facet = Facet(facet)
            if facet is exclude or not selected:
                continue
            by_key = self._index[facet]
            ids: frozenset[int] = frozenset().union(
                *(by_key.get(k, frozenset()) for k in selected)
            )
            candidates = ids if candidates is None else candidates & ids
            if not candidates:
                return frozenset()
        return candidates

    def options(self, facet: Facet, filters: FacetFilters) -> list[Any]:
        """Reachable values of *facet* given the other facets' filters.

        *facet*'s own entry in *filters*, if any, is ignored.
        """
        facet = Facet(facet)
        candidates = self.matching_ids(filters, exclude=facet)
        catalog = self._catalogs[facet]
        if candidates is None:
            return list(catalog)
        by_key = self._index[facet]
        return [
            value for value in catalog
            if not by_key.get(facet_key(facet, value), frozenset()).isdisjoint(candidates)
        ]

    def get_vendors(self, products=(), categories=(), modes=(), banks=()) -> list[str]:
        return self.options(Facet.VENDOR, {
            Facet.PRODUCT: products, Facet.CATEGORY: categories,
            Facet.MODE: modes, Facet.BANK: banks,
        })

    def get_products(self, vendors=(), categories=(), modes=(), banks=()) -> list[Product]:
        return self.options(Facet.PRODUCT, {
            Facet.VENDOR: vendors, Facet.CATEGORY: categories,
            Facet.MODE: modes, Facet.BANK: banks,
        })

    def get_categories(self, vendors=(), products=(), modes=(), banks=()) -> list[Category]:
        return self.options(Facet.CATEGORY, {
            Facet.VENDOR: vendors, Facet.PRODUCT: products,
            Facet.MODE: modes, Facet.BANK: banks,
        })

    def get_modes(self, vendors=(), products=(), categories=(), banks=()) -> list[Mode]:
        return self.options(Facet.MODE, {
            Facet.VENDOR: vendors, Facet.PRODUCT: products,
            Facet.CATEGORY: categories, Facet.BANK: banks,
        })

    def get_banks(self, vendors=(), products=(), categories=(), modes=()) -> list[Bank]:
        return self.options(Facet.BANK, {
            Facet.VENDOR: vendors, Facet.PRODUCT: products,
            Facet.CATEGORY: categories, Facet.MODE: modes,
        })

    def get_presets(
        self,
        vendors: Collection[str] = (),
        products: Collection[int] = (),
        categories: Collection[int] = (),
        modes: Collection[int] = (),
        banks: Collection[int] = (),
        query: str = "",
        offset: int = 0,
        limit: int = 50,
    ) -> PaginatedResult[Preset]:
        """Search presets and return one page.

        Text matching is a case-insensitive substring test against the
        preset name or comment; empty text matches everything.

        Raises:
            ValueError: If offset is negative or limit is less than 1.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        candidates = self.matching_ids({
            Facet.VENDOR: vendors, Facet.PRODUCT: products,
            Facet.CATEGORY: categories, Facet.MODE: modes, Facet.BANK: banks,
        })
        needle = query.casefold()

        matches: list[Preset] = []
        for preset in self._presets.values():
            if candidates is not None and preset.id not in candidates:
                continue
            if needle and not (
                contains_casefold(preset.name, needle)
                or contains_casefold(preset.comment, needle)
            ):
                continue
            matches.append(preset)

        page = tuple(matches[offset:offset + limit])
        logger.debug(
            "get_presets query=%r offset=%d limit=%d total=%d",
            query, offset, limit, len(matches),
        )
        return PaginatedResult(
            results=page,
            total=len(matches),
            start=offset,
            end=offset + len(page),
        )
