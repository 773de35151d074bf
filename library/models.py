"""
Value types for the preset library.

Every record is a frozen dataclass: once the library is loaded nothing in it
changes, and the browser side relies on records being safe to share between
the provider thread and the event loop.

Facet keys:
    vendor    -> the vendor name itself
    product   -> Product.id
    category  -> Category.id
    mode      -> Mode.id
    bank      -> Bank.id (0 on a preset means "no bank")
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

NO_BANK = 0


class Facet(str, Enum):
    """The five independent filter dimensions.

    Values double as the wire names of the filter parameters.
    """

    VENDOR = "vendors"
    PRODUCT = "products"
    CATEGORY = "categories"
    MODE = "modes"
    BANK = "banks"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def others(self) -> tuple["Facet", ...]:
        return tuple(f for f in Facet if f is not self)


FacetKey = Union[str, int]


@dataclass(frozen=True)
class Product:
    """An installed product (a content path in the browser database)."""

    id: int
    name: str
    vendor: str
    content_dir: str = field(default="", compare=False, repr=False)
    upid: str = field(default="", compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "vendor": self.vendor}


@dataclass(frozen=True)
class Category:
    """A category path; any of the three levels may be empty."""

    id: int
    name: str
    subcategory: str = ""
    subsubcategory: str = ""

    @property
    def levels(self) -> tuple[str, str, str]:
        return (self.name, self.subcategory, self.subsubcategory)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Mode:
    """A sound characteristic ("mode"), e.g. Warm, Percussive."""

    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Bank:
    """A bank chain; any of the three entries may be empty."""

    id: int
    entry1: str
    entry2: str = ""
    entry3: str = ""

    @property
    def levels(self) -> tuple[str, str, str]:
        return (self.entry1, self.entry2, self.entry3)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Preset:
    """One preset (sound) as returned by search."""

    id: int
    name: str
    comment: str
    vendor: str
    product_id: int
    product_name: str
    file_name: str
    bank: int = NO_BANK
    categories: tuple[int, ...] = ()
    modes: tuple[int, ...] = ()

    @property
    def has_bank(self) -> bool:
        return self.bank != NO_BANK

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["categories"] = list(self.categories)
        d["modes"] = list(self.modes)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Preset":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            comment=data.get("comment") or "",
            vendor=data.get("vendor") or "",
            product_id=int(data.get("product_id") or 0),
            product_name=data.get("product_name") or "",
            file_name=data.get("file_name") or "",
            bank=int(data.get("bank") or NO_BANK),
            categories=tuple(int(c) for c in data.get("categories") or ()),
            modes=tuple(int(m) for m in data.get("modes") or ()),
        )


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    """One page of results: ``results`` covers rows ``start`` (inclusive) to
    ``end`` (exclusive) out of ``total`` matches."""

    results: tuple[T, ...]
    total: int
    start: int
    end: int

    @property
    def is_well_formed(self) -> bool:
        return (
            0 <= self.start <= self.end
            and self.end - self.start == len(self.results)
            and (self.end <= self.total or not self.results)
        )

    @property
    def has_more(self) -> bool:
        return self.total > self.end


def facet_key(facet: Facet, value: Any) -> FacetKey:
    """Return the selection key of a catalog *value* of *facet*."""
    if facet is Facet.VENDOR:
        return value
    return value.id
