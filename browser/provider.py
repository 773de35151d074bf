"""
Data provider interface and its two adapters.

LibraryProvider answers from an in-process LibraryState; HttpProvider talks
to a running API server (see api/). Both raise ProviderError for anything
that goes wrong on the provider side, which is the only failure the browser
core handles.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Collection, Mapping
from typing import Any, Callable, Optional, Protocol, TypeVar

import httpx

from browser.errors import FetchError, ProviderError
from library.loader import LibraryNotReady, LibraryState
from library.models import (
    Bank,
    Category,
    Facet,
    FacetKey,
    Mode,
    PaginatedResult,
    Preset,
    Product,
)
from utils.config import DEFAULT_READY_POLL_MS

logger = logging.getLogger(__name__)

DEFAULT_READY_INTERVAL = DEFAULT_READY_POLL_MS / 1000

T = TypeVar("T")


class DataProvider(Protocol):
    """Everything the browser core needs from a preset source.

    A facet option query never takes the facet's own selection.
    """

    async def get_vendors(self, products=(), categories=(), modes=(), banks=()) -> list[str]: ...

    async def get_products(self, vendors=(), categories=(), modes=(), banks=()) -> list[Product]: ...

    async def get_categories(self, vendors=(), products=(), modes=(), banks=()) -> list[Category]: ...

    async def get_modes(self, vendors=(), products=(), categories=(), banks=()) -> list[Mode]: ...

    async def get_banks(self, vendors=(), products=(), categories=(), modes=()) -> list[Bank]: ...

    async def get_presets(self, vendors=(), products=(), categories=(), modes=(), banks=(),
                          query: str = "", offset: int = 0,
                          limit: int = 50) -> PaginatedResult[Preset]: ...

    async def is_loading(self) -> bool: ...

    async def activate_preset(self, preset_id: int) -> None: ...


def option_params(facet: Facet, filters: Mapping[Facet, Collection[FacetKey]]) -> dict[str, list]:
    """Keyword arguments for *facet*'s option query; *facet* itself is dropped."""
    facet = Facet(facet)
    return {f.value: sorted(filters.get(f, ())) for f in facet.others()}


async def fetch_options(provider: DataProvider, facet: Facet,
                        filters: Mapping[Facet, Collection[FacetKey]]) -> list:
    """Dispatch to the provider's ``get_<facet>`` call."""
    facet = Facet(facet)
    method = getattr(provider, f"get_{facet.value}")
    return await method(**option_params(facet, filters))


async def wait_until_ready(provider: DataProvider,
                           interval: float = DEFAULT_READY_INTERVAL,
                           timeout: Optional[float] = None) -> bool:
    """Poll ``is_loading`` every *interval* seconds until it reports False.

    A probe that raises counts as "still loading". Returns False if
    *timeout* seconds pass first; never raises for provider failures.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    attempts = 0
    while True:
        attempts += 1
        try:
            if not await provider.is_loading():
                logger.debug("Provider ready after %d probe(s)", attempts)
                return True
        except ProviderError as exc:
            logger.debug("Readiness probe failed: %s", exc)
        if deadline is not None and time.monotonic() + interval > deadline:
            logger.warning("Provider not ready after %.1fs", timeout)
            return False
        await asyncio.sleep(interval)


# ── in-process adapter ────────────────────────────────────────────────────────

class LibraryProvider:
    """DataProvider over a LibraryState in this process.

    Library calls are CPU-bound set work, so they run in a worker thread to
    keep the event loop responsive.
    """

    def __init__(self, state: LibraryState):
        self.state = state

    async def _call(self, method: str, **kwargs) -> Any:
        try:
            library = self.state.require()
        except LibraryNotReady as exc:
            raise ProviderError(str(exc)) from exc
        return await asyncio.to_thread(getattr(library, method), **kwargs)

    async def get_vendors(self, products=(), categories=(), modes=(), banks=()):
        return await self._call("get_vendors", products=products, categories=categories,
                                modes=modes, banks=banks)

    async def get_products(self, vendors=(), categories=(), modes=(), banks=()):
        return await self._call("get_products", vendors=vendors, categories=categories,
                                modes=modes, banks=banks)

    async def get_categories(self, vendors=(), products=(), modes=(), banks=()):
        return await self._call("get_categories", vendors=vendors, products=products,
                                modes=modes, banks=banks)

    async def get_modes(self, vendors=(), products=(), categories=(), banks=()):
        return await self._call("get_modes", vendors=vendors, products=products,
                                categories=categories, banks=banks)

    async def get_banks(self, vendors=(), products=(), categories=(), modes=()):
        return await self._call("get_banks", vendors=vendors, products=products,
                                categories=categories, modes=modes)

    async def get_presets(self, vendors=(), products=(), categories=(), modes=(), banks=(),
                          query="", offset=0, limit=50):
        return await self._call("get_presets", vendors=vendors, products=products,
                                categories=categories, modes=modes, banks=banks,
                                query=query, offset=offset, limit=limit)

    async def is_loading(self) -> bool:
        return self.state.loading

    async def activate_preset(self, preset_id: int) -> None:
        try:
            await asyncio.to_thread(self.state.activate, preset_id)
        except LibraryNotReady as exc:
            raise ProviderError(str(exc)) from exc
        except KeyError as exc:
            raise ProviderError(f"Unknown preset {preset_id}") from exc


# ── HTTP adapter ──────────────────────────────────────────────────────────────

class HttpProvider:
    """DataProvider over the preset browser HTTP API.

    Pass ``client`` to reuse an existing ``httpx.AsyncClient`` (tests mount
    the app with ``httpx.ASGITransport``); otherwise one is created and
    closed by ``aclose``.
    """

    API_PREFIX = "/api/v1"

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, params: Optional[dict] = None,
                       facet: Optional[str] = None,
                       offset: Optional[int] = None) -> httpx.Response:
        url = f"{self.API_PREFIX}{path}"
        try:
            r = await self._client.request(method, url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise FetchError(f"{method} {url}: {exc}", facet=facet, offset=offset) from exc
        if r.status_code < 200 or r.status_code >= 300:
            detail = _error_detail(r)
            logger.warning("%s %s returned %d: %s", method, url, r.status_code, detail)
            raise FetchError(f"{method} {url} returned {r.status_code}: {detail}",
                             facet=facet, offset=offset)
        return r

    @staticmethod
    def _decode(r: httpx.Response, convert: Callable[[Any], T],
                facet: Optional[str] = None, offset: Optional[int] = None) -> T:
        """Run *convert* over the JSON body; a body of the wrong shape is a FetchError."""
        try:
            return convert(r.json())
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("%s %s: unexpected response body: %r",
                           r.request.method, r.request.url.path, r.text[:200])
            raise FetchError(
                f"{r.request.method} {r.request.url.path}: unexpected response body "
                f"({type(exc).__name__}: {exc})",
                facet=facet, offset=offset,
            ) from exc

    async def _options(self, facet: Facet, params: dict,
                       convert: Callable[[dict], Any]) -> list:
        r = await self._request("GET", f"/{facet.value}", params, facet=facet.value)
        return self._decode(r, lambda data: [convert(d) for d in _rows(data)],
                            facet=facet.value)

    async def get_vendors(self, products=(), categories=(), modes=(), banks=()):
        return await self._options(Facet.VENDOR, {
            "products": list(products), "categories": list(categories),
            "modes": list(modes), "banks": list(banks)}, _vendor)

    async def get_products(self, vendors=(), categories=(), modes=(), banks=()):
        return await self._options(Facet.PRODUCT, {
            "vendors": list(vendors), "categories": list(categories),
            "modes": list(modes), "banks": list(banks)},
            lambda d: Product(id=int(d["id"]), name=d["name"], vendor=d.get("vendor") or ""))

    async def get_categories(self, vendors=(), products=(), modes=(), banks=()):
        return await self._options(Facet.CATEGORY, {
            "vendors": list(vendors), "products": list(products),
            "modes": list(modes), "banks": list(banks)},
            lambda d: Category(id=int(d["id"]), name=d.get("name") or "",
                               subcategory=d.get("subcategory") or "",
                               subsubcategory=d.get("subsubcategory") or ""))

    async def get_modes(self, vendors=(), products=(), categories=(), banks=()):
        return await self._options(Facet.MODE, {
            "vendors": list(vendors), "products": list(products),
            "categories": list(categories), "banks": list(banks)},
            lambda d: Mode(id=int(d["id"]), name=d.get("name") or ""))

    async def get_banks(self, vendors=(), products=(), categories=(), modes=()):
        return await self._options(Facet.BANK, {
            "vendors": list(vendors), "products": list(products),
            "categories": list(categories), "modes": list(modes)},
            lambda d: Bank(id=int(d["id"]), entry1=d.get("entry1") or "",
                           entry2=d.get("entry2") or "", entry3=d.get("entry3") or ""))

    async def get_presets(self, vendors=(), products=(), categories=(), modes=(), banks=(),
                          query="", offset=0, limit=50):
        r = await self._request("GET", "/presets", {
            "vendors": list(vendors), "products": list(products),
            "categories": list(categories), "modes": list(modes), "banks": list(banks),
            "query": query, "offset": offset, "limit": limit,
        }, offset=offset)
        return self._decode(r, lambda data: PaginatedResult(
            results=tuple(Preset.from_dict(d) for d in _rows(data["results"])),
            total=int(data["total"]),
            start=int(data["start"]),
            end=int(data["end"]),
        ), offset=offset)

    async def is_loading(self) -> bool:
        try:
            r = await self._client.get(f"{self.API_PREFIX}/status")
        except httpx.HTTPError as exc:
            raise ProviderError(f"Status probe failed: {exc}") from exc
        if r.status_code == 503:
            return True
        if r.status_code != 200:
            raise ProviderError(f"Status probe returned {r.status_code}")
        return self._decode(r, lambda data: bool(data.get("loading")))

    async def activate_preset(self, preset_id: int) -> None:
        await self._request("POST", f"/presets/{preset_id}/activate")


def _rows(data: Any) -> list:
    if not isinstance(data, list):
        raise TypeError(f"expected a JSON array, got {type(data).__name__}")
    return data


def _vendor(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a vendor name, got {type(value).__name__}")
    return value


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)
