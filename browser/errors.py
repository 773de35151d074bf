"""Failure reporting for the browser core.

Providers raise ProviderError. Core operations catch it and return a
FetchStatus instead, so nothing a provider does is fatal to the browser.
"""

from enum import Enum
from typing import Optional


class ProviderError(Exception):
    """A data provider could not answer a request."""


class FetchError(ProviderError):
    """One failed request; carries the facet or page offset it was for."""

    def __init__(self, message: str, facet: Optional[str] = None,
                 offset: Optional[int] = None):
        super().__init__(message)
        self.facet = facet
        self.offset = offset


class FetchStatus(str, Enum):
    """Outcome of one catalog refresh or page request."""

    APPLIED = "applied"          # response became current state
    UNCHANGED = "unchanged"      # current state already answers it; no request
    STALE = "stale"              # superseded while in flight; dropped
    FAILED = "failed"            # provider error; previous state kept, retryable
    EXHAUSTED = "exhausted"      # no more pages; no request
    BUSY = "busy"                # a page request is already in flight
    NOT_READY = "not_ready"      # provider still loading

    @property
    def retryable(self) -> bool:
        return self in (FetchStatus.FAILED, FetchStatus.NOT_READY, FetchStatus.BUSY)
