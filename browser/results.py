"""
Accumulate preset search results page by page.

The accumulator owns one ComposedQuery at a time. Asking for a page of a
query with a different filter (anything but offset/limit) resets it: results
are cleared and the generation advances before any request goes out, so a
response for the previous query is recognised as stale and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Optional

from browser.errors import FetchError, FetchStatus, ProviderError
from browser.provider import DataProvider
from browser.query import ComposedQuery
from library.models import PaginatedResult, Preset
from utils.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


async def _resolved(status: FetchStatus) -> FetchStatus:
    return status


class PaginatedResultAccumulator:
    """Ordered, duplicate-free concatenation of pages for one query."""

    def __init__(self, provider: DataProvider, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.provider = provider
        self.page_size = page_size
        self.query: Optional[ComposedQuery] = None
        self.last_error: Optional[ProviderError] = None
        self._results: list[Preset] = []
        self._seen: set[int] = set()
        self._known = 0
        self._total: Optional[int] = None
        self._generation = 0
        self._in_flight = False
        self._pages: list[PaginatedResult[Preset]] = []

    # ── state ─────────────────────────────────────────────────────────────

    @property
    def results(self) -> tuple[Preset, ...]:
        return tuple(self._results)

    @property
    def pages(self) -> tuple[PaginatedResult[Preset], ...]:
        """Every page applied for the current query, in order."""
        return tuple(self._pages)

    @property
    def total(self) -> Optional[int]:
        """Total matches reported by the provider; None before the first page."""
        return self._total

    @property
    def known_count(self) -> int:
        """Offset of the next page: ``end`` of the last applied page."""
        return self._known

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def has_more(self) -> bool:
        return self._total is None or self._total > self._known

    def find(self, preset_id: int) -> Optional[Preset]:
        for preset in self._results:
            if preset.id == preset_id:
                return preset
        return None

    # ── transitions ───────────────────────────────────────────────────────

    def reset(self, query: ComposedQuery) -> bool:
        """Make *query* current; returns True if accumulated state was cleared.

        A query with the same filter as the current one leaves everything
        in place.
        """
        if query.same_filter(self.query):
            return False
        self._generation += 1
        self.query = query.with_page(0, self.page_size)
        self._results = []
        self._seen = set()
        self._pages = []
        self._known = 0
        self._total = None
        self._in_flight = False
        self.last_error = None
        logger.debug("Reset results (generation %d)", self._generation)
        return True

    def request_page(self, query: Optional[ComposedQuery] = None) -> Awaitable[FetchStatus]:
        """Issue a request for the next page.

        With *query*, resets first if its filter differs from the current
        one. The request is issued (or refused) before this returns; await
        the result for the status.

        Raises:
            ValueError: If no query has ever been given.
        """
        if query is not None:
            self.reset(query)
        if self.query is None:
            raise ValueError("request_page needs a query")
        if not self.has_more:
            return _resolved(FetchStatus.EXHAUSTED)
        if self._in_flight:
            return _resolved(FetchStatus.BUSY)
        self._in_flight = True
        page_query = self.query.with_page(self._known, self.page_size)
        return self._fetch(self._generation, page_query)

    async def _fetch(self, generation: int, query: ComposedQuery) -> FetchStatus:
        try:
            page = await self.provider.get_presets(**query.to_params())
        except ProviderError as exc:
            if generation != self._generation:
                return FetchStatus.STALE
            self.last_error = exc
            logger.warning("Page at offset %d failed: %s", query.offset, exc)
            return FetchStatus.FAILED
        finally:
            # a newer generation owns the flag once reset has run
            if generation == self._generation:
                self._in_flight = False
        if generation != self._generation:
            logger.debug("Dropped stale page at offset %d (generation %d < %d)",
                         query.offset, generation, self._generation)
            return FetchStatus.STALE
        if not page.is_well_formed or page.start != query.offset:
            self.last_error = FetchError(
                f"Malformed page: start={page.start} end={page.end} "
                f"total={page.total} results={len(page.results)}",
                offset=query.offset,
            )
            logger.warning("Rejected page at offset %d: %s", query.offset, self.last_error)
            return FetchStatus.FAILED
        return self._apply(page)

    def _apply(self, page: PaginatedResult[Preset]) -> FetchStatus:
        added = 0
        for preset in page.results:
            if preset.id in self._seen:
                continue
            self._seen.add(preset.id)
            self._results.append(preset)
            added += 1
        self._pages.append(page)
        self._known = page.end
        # an empty page cannot advance; trust it over the reported total
        self._total = page.total if page.results else page.end
        self.last_error = None
        logger.debug("Applied page %d-%d of %d (%d new)",
                     page.start, page.end, page.total, added)
        return FetchStatus.APPLIED
