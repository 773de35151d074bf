"""Compose provider queries from committed selections and search text."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from browser.selection import EMPTY, FacetSelections
from library.models import Facet
from utils.config import DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ComposedQuery:
    """A fully specified preset search; derived, never mutated.

    Two queries with the same ``filter_key`` describe the same result
    sequence and differ at most in the page they ask for. Facet sets compare
    without regard to order; text compares exactly.
    """

    vendors: frozenset[str] = EMPTY
    products: frozenset[int] = EMPTY
    categories: frozenset[int] = EMPTY
    modes: frozenset[int] = EMPTY
    banks: frozenset[int] = EMPTY
    text: str = ""
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def filter_key(self) -> tuple:
        return (self.vendors, self.products, self.categories,
                self.modes, self.banks, self.text)

    @property
    def selections(self) -> FacetSelections:
        return FacetSelections(self.vendors, self.products, self.categories,
                               self.modes, self.banks)

    def same_filter(self, other: Optional["ComposedQuery"]) -> bool:
        return other is not None and self.filter_key == other.filter_key

    def with_page(self, offset: int, limit: Optional[int] = None) -> "ComposedQuery":
        _check_page(offset, self.limit if limit is None else limit)
        return replace(self, offset=offset, limit=self.limit if limit is None else limit)

    def to_params(self) -> dict[str, Any]:
        """Keyword arguments for ``DataProvider.get_presets``.

        Facet values are sorted so equal queries produce equal requests.
        """
        params: dict[str, Any] = {
            f.value: sorted(getattr(self, f.value)) for f in Facet
        }
        params.update(query=self.text, offset=self.offset, limit=self.limit)
        return params


def _check_page(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")


def compose(selections: FacetSelections, text: str = "", offset: int = 0,
            limit: int = DEFAULT_PAGE_SIZE) -> ComposedQuery:
    """Build the query for *selections* and *text* at one page position.

    Raises:
        ValueError: If offset is negative or limit is less than 1.
    """
    _check_page(offset, limit)
    return ComposedQuery(
        vendors=frozenset(selections.vendors),
        products=frozenset(selections.products),
        categories=frozenset(selections.categories),
        modes=frozenset(selections.modes),
        banks=frozenset(selections.banks),
        text=text,
        offset=offset,
        limit=limit,
    )
