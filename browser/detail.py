"""
Preset detail projection and latest-wins activation.

``project`` turns the ids on a preset into display strings using whatever
catalogs are at hand. An id the catalogs do not know renders as
UNKNOWN_LABEL; projection never fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from browser.errors import ProviderError
from library.models import Facet, FacetKey, Preset, facet_key
from utils.formatting import join_levels, join_list

logger = logging.getLogger(__name__)

NO_BANK_LABEL = "No bank"
UNKNOWN_LABEL = "Unknown"
EMPTY_LIST_LABEL = "None"
ALL_LABEL = "All"


@dataclass(frozen=True)
class DetailView:
    id: int
    name: str
    comment: str
    vendor: str
    product: str
    bank: str
    categories: str
    modes: str
    file_name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def value_label(facet: Facet, value: Any) -> str:
    """Display string for one catalog value."""
    facet = Facet(facet)
    if facet is Facet.VENDOR:
        return value
    if facet in (Facet.CATEGORY, Facet.BANK):
        return join_levels(value.levels) or UNKNOWN_LABEL
    return value.name


def _by_key(facet: Facet, catalog: Iterable[Any]) -> dict[FacetKey, Any]:
    return {facet_key(facet, v): v for v in catalog}


def _label(facet: Facet, key: FacetKey, catalog: Mapping[FacetKey, Any]) -> str:
    if key in catalog:
        return value_label(facet, catalog[key])
    # a vendor key is its own label
    return key if facet is Facet.VENDOR else UNKNOWN_LABEL


def _labels(facet: Facet, keys: Sequence[FacetKey],
            catalog: Mapping[FacetKey, Any]) -> list[str]:
    return [_label(facet, k, catalog) for k in keys]


def project(preset: Preset, catalogs: Mapping[Facet, Iterable[Any]]) -> DetailView:
    """Resolve *preset*'s ids against *catalogs* into a DetailView."""
    categories = _by_key(Facet.CATEGORY, catalogs.get(Facet.CATEGORY, ()))
    modes = _by_key(Facet.MODE, catalogs.get(Facet.MODE, ()))
    banks = _by_key(Facet.BANK, catalogs.get(Facet.BANK, ()))

    if not preset.has_bank:
        bank = NO_BANK_LABEL
    elif preset.bank in banks:
        bank = value_label(Facet.BANK, banks[preset.bank])
    else:
        bank = UNKNOWN_LABEL

    return DetailView(
        id=preset.id,
        name=preset.name,
        comment=preset.comment,
        vendor=preset.vendor or UNKNOWN_LABEL,
        product=preset.product_name or UNKNOWN_LABEL,
        bank=bank,
        categories=join_list(_labels(Facet.CATEGORY, preset.categories, categories))
        or EMPTY_LIST_LABEL,
        modes=join_list(_labels(Facet.MODE, preset.modes, modes)) or EMPTY_LIST_LABEL,
        file_name=preset.file_name,
    )


def summarize_selection(facet: Facet, keys: Iterable[FacetKey],
                        catalog: Iterable[Any]) -> str:
    """One-line summary of a committed selection, e.g. "Acme and Zeta"."""
    keys = list(keys)
    if not keys:
        return ALL_LABEL
    facet = Facet(facet)
    by_key = _by_key(facet, catalog)
    ordered = [k for k in by_key if k in keys]
    ordered += [k for k in keys if k not in by_key]
    return join_list(_labels(facet, ordered, by_key))


class PresetActivator:
    """Sends activations one at a time; only the latest selection is sent.

    Selecting while an activation is in flight queues the new one; any
    selection superseded before it was sent is never sent.
    """

    def __init__(self, activate: Callable[[int], Awaitable[None]]):
        self._activate = activate
        self._latest: Optional[int] = None
        self._requested = 0
        self._sent = 0
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[Exception] = None

    @property
    def latest(self) -> Optional[int]:
        return self._latest

    def select(self, preset_id: int) -> None:
        self._latest = preset_id
        self._requested += 1
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drain())

    async def wait_idle(self) -> None:
        while self._task is not None and not self._task.done():
            await self._task

    async def _drain(self) -> None:
        while self._sent != self._requested:
            self._sent = self._requested
            preset_id = self._latest
            try:
                await self._activate(preset_id)
            except ProviderError as exc:
                self.last_error = exc
                logger.warning("Activation of preset %s failed: %s", preset_id, exc)
            except Exception as exc:
                # e.g. a preview sink raising inside the provider
                self.last_error = exc
                logger.exception("Activation of preset %s raised", preset_id)
            else:
                logger.debug("Activated preset %s", preset_id)
