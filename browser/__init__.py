"""Faceted filter and incremental search engine for the preset library."""

from browser.errors import FetchError, FetchStatus, ProviderError
from browser.selection import FacetSelections, FacetSelectionStore
from browser.query import ComposedQuery, compose
from browser.provider import DataProvider, HttpProvider, LibraryProvider, wait_until_ready
from browser.catalogs import FacetCatalogResolver
from browser.results import PaginatedResultAccumulator
from browser.detail import DetailView, PresetActivator, project
from browser.session import PresetBrowser

__all__ = [
    "FetchError",
    "FetchStatus",
    "ProviderError",
    "FacetSelections",
    "FacetSelectionStore",
    "ComposedQuery",
    "compose",
    "DataProvider",
    "HttpProvider",
    "LibraryProvider",
    "wait_until_ready",
    "FacetCatalogResolver",
    "PaginatedResultAccumulator",
    "DetailView",
    "PresetActivator",
    "project",
    "PresetBrowser",
]
