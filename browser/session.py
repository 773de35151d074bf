"""
PresetBrowser: one browsing session wired from the core components.

    FacetSelectionStore --confirm--> compose() --> PaginatedResultAccumulator
            |                                             |
            +--committed--> FacetCatalogResolver          +--> select() --> detail
                                                                  |
                                                          PresetActivator

Everything runs on one event loop. Commits take effect synchronously (the
results are cleared and new requests are issued before ``confirm`` returns);
responses arrive later and are applied only if still current.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Optional

from browser.catalogs import FacetCatalogResolver
from browser.detail import DetailView, PresetActivator, project, summarize_selection
from browser.errors import FetchStatus, ProviderError
from browser.provider import DEFAULT_READY_INTERVAL, DataProvider, wait_until_ready
from browser.query import ComposedQuery, compose
from browser.results import PaginatedResultAccumulator
from browser.selection import FacetSelections, FacetSelectionStore
from library.models import Facet, FacetKey, Preset
from utils.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


class PresetBrowser:
    """Faceted, incremental preset search over a DataProvider."""

    def __init__(self, provider: DataProvider, page_size: int = DEFAULT_PAGE_SIZE,
                 ready_interval: float = DEFAULT_READY_INTERVAL,
                 ready_timeout: Optional[float] = None):
        self.provider = provider
        self.page_size = page_size
        self.ready_interval = ready_interval
        self.ready_timeout = ready_timeout
        self.ready = False
        self.text = ""
        self.store = FacetSelectionStore()
        self.catalogs = FacetCatalogResolver(provider)
        self.results = PaginatedResultAccumulator(provider, page_size)
        self.activator = PresetActivator(provider.activate_preset)
        self.selected: Optional[Preset] = None
        self.detail: Optional[DetailView] = None
        self.catalog_status: dict[Facet, FetchStatus] = {}
        self._tasks: set[asyncio.Task] = set()
        self.store.subscribe(self._on_commit)

    # ── derived state ─────────────────────────────────────────────────────

    @property
    def selections(self) -> FacetSelections:
        return self.store.committed

    @property
    def query(self) -> ComposedQuery:
        return compose(self.store.committed, self.text, 0, self.page_size)

    @property
    def failed_catalogs(self) -> dict[Facet, ProviderError]:
        """Facets whose latest catalog refresh failed, with the error."""
        return {f: e for f, e in self.catalogs.errors.items() if e is not None}

    def summary(self, facet: Facet) -> str:
        return summarize_selection(facet, self.store.committed.get(facet),
                                   self.catalogs.catalog(facet))

    # ── lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> bool:
        """Wait for the provider, then load catalogs and the first page.

        Returns False (and issues no queries) if the provider never became
        ready within ``ready_timeout``. A catalog that failed to load leaves
        ``catalog_status`` FAILED for its facet; see ``refresh_catalogs``.
        """
        self.ready = await wait_until_ready(
            self.provider, self.ready_interval, self.ready_timeout
        )
        if not self.ready:
            return False
        self.catalog_status, _ = await asyncio.gather(
            self.catalogs.refresh_all(self.store.committed),
            self.results.request_page(self.query),
        )
        return True

    async def refresh_catalogs(self) -> dict[Facet, FetchStatus]:
        """Re-request every catalog not current for the committed selections.

        Facets already loaded for them come back UNCHANGED without a request,
        so this is the retry for catalogs that failed.
        """
        if not self.ready:
            return {f: FetchStatus.NOT_READY for f in Facet}
        self.catalog_status = await self.catalogs.refresh_all(self.store.committed)
        return dict(self.catalog_status)

    async def settle(self) -> None:
        """Wait until every request issued so far has been answered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        await self.activator.wait_idle()

    def _spawn(self, awaitable: Awaitable) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ── selection editing ─────────────────────────────────────────────────

    def open_editor(self, facet: Facet) -> None:
        self.store.open_editor(facet)

    def toggle(self, facet: Facet, key: FacetKey) -> bool:
        """Flip *key* in the pending selection.

        Only offered keys can be added once *facet*'s catalog has loaded;
        before that any key is accepted.
        """
        offered = self.catalogs.keys(facet) if self.catalogs.is_loaded(facet) else None
        return self.store.toggle(facet, key, offered=offered)

    def clear_pending(self, facet: Facet) -> None:
        self.store.clear_pending(facet)

    def cancel(self, facet: Facet) -> None:
        self.store.cancel(facet)

    def confirm(self, facet: Facet) -> bool:
        return self.store.confirm(facet)

    def clear(self, facet: Optional[Facet] = None) -> bool:
        return self.store.clear_committed(facet)

    def _on_commit(self, facet: Facet, selections: FacetSelections) -> None:
        if not self.ready:
            return
        self._spawn(self.catalogs.refresh_all(selections))
        self._spawn(self.results.request_page(self.query))

    # ── text and paging ───────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        """Change the search text; catalogs do not depend on it."""
        if text == self.text:
            return
        self.text = text
        if self.ready:
            self._spawn(self.results.request_page(self.query))

    def load_more(self) -> Awaitable[FetchStatus]:
        """Request the next page of the current query."""
        if not self.ready:
            return _not_ready()
        return self.results.request_page(self.query)

    # ── preset selection ──────────────────────────────────────────────────

    def select(self, preset: Preset | int) -> Optional[DetailView]:
        """Make *preset* the selected preset and activate it.

        An id not among the accumulated results selects nothing.
        """
        if not isinstance(preset, Preset):
            found = self.results.find(preset)
            if found is None:
                logger.debug("Ignoring selection of unknown preset %s", preset)
                return None
            preset = found
        detail = project(preset, self.catalogs.catalogs)
        self.selected, self.detail = preset, detail
        self.activator.select(preset.id)
        return detail


async def _not_ready() -> FetchStatus:
    return FetchStatus.NOT_READY
