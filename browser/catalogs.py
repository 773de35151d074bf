"""
Per-facet catalogs of still-reachable values.

Each facet's catalog depends only on the committed selections of the other
four facets. Every refresh takes a new per-facet token when it is issued;
a response is applied only if its token is still the latest, so a slow
answer for an older selection can never overwrite a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Optional

from browser.errors import FetchStatus, ProviderError
from browser.provider import DataProvider, fetch_options
from browser.selection import FacetSelections
from library.models import Facet, FacetKey, facet_key

logger = logging.getLogger(__name__)


async def _resolved(status: FetchStatus) -> FetchStatus:
    return status


class FacetCatalogResolver:
    """Holds the latest catalog per facet and refreshes it from a provider."""

    def __init__(self, provider: DataProvider):
        self.provider = provider
        self._catalogs: dict[Facet, list[Any]] = {f: [] for f in Facet}
        self._tokens: dict[Facet, int] = {f: 0 for f in Facet}
        # filters the applied catalog was computed for; None = never loaded
        self._applied: dict[Facet, Optional[tuple]] = {f: None for f in Facet}
        self.errors: dict[Facet, Optional[ProviderError]] = {f: None for f in Facet}

    def catalog(self, facet: Facet) -> list[Any]:
        return list(self._catalogs[Facet(facet)])

    @property
    def catalogs(self) -> dict[Facet, list[Any]]:
        return {f: list(v) for f, v in self._catalogs.items()}

    def keys(self, facet: Facet) -> frozenset[FacetKey]:
        """Keys of the values currently offered for *facet*."""
        facet = Facet(facet)
        return frozenset(facet_key(facet, v) for v in self._catalogs[facet])

    def is_loaded(self, facet: Facet) -> bool:
        return self._applied[Facet(facet)] is not None

    @staticmethod
    def dependency_key(facet: Facet, selections: FacetSelections) -> tuple:
        """What *facet*'s catalog depends on: every other facet's selection."""
        return tuple(selections.get(f) for f in Facet(facet).others())

    def refresh(self, facet: Facet, selections: FacetSelections) -> Awaitable[FetchStatus]:
        """Issue a refresh of *facet* for *selections*.

        The token is taken immediately, so any response to an earlier
        refresh is already stale when this returns. If the applied catalog
        was computed for the same dependencies no request is sent and the
        result is UNCHANGED.
        """
        facet = Facet(facet)
        self._tokens[facet] += 1
        token = self._tokens[facet]
        key = self.dependency_key(facet, selections)
        if key == self._applied[facet]:
            return _resolved(FetchStatus.UNCHANGED)
        return self._fetch(facet, selections, key, token)

    def refresh_all(self, selections: FacetSelections) -> Awaitable[dict[Facet, FetchStatus]]:
        """Issue a refresh of every facet; await for a per-facet status map."""
        pending = {f: self.refresh(f, selections) for f in Facet}

        async def gather() -> dict[Facet, FetchStatus]:
            statuses = await asyncio.gather(*pending.values())
            return dict(zip(pending.keys(), statuses))

        return gather()

    async def _fetch(self, facet: Facet, selections: FacetSelections,
                     key: tuple, token: int) -> FetchStatus:
        try:
            values = await fetch_options(
                self.provider, facet, selections.as_filters(exclude=facet)
            )
        except ProviderError as exc:
            if token != self._tokens[facet]:
                return FetchStatus.STALE
            logger.warning("Keeping previous %s catalog: %s", facet.value, exc)
            self.errors[facet] = exc
            return FetchStatus.FAILED
        if token != self._tokens[facet]:
            logger.debug("Dropped stale %s catalog (token %d < %d)",
                         facet.value, token, self._tokens[facet])
            return FetchStatus.STALE
        self._catalogs[facet] = list(values)
        self._applied[facet] = key
        self.errors[facet] = None
        logger.debug("Applied %s catalog: %d values", facet.value, len(values))
        return FetchStatus.APPLIED
