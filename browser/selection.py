"""
Facet selection state: committed selections plus per-facet pending edits.

A facet picker works on a private copy of the committed selection. Toggling
values changes only that copy; ``confirm`` publishes it, ``cancel`` throws it
away. Only committed state ever reaches a data provider.

Listeners registered with ``subscribe`` are called synchronously from
``confirm`` and ``clear_committed`` whenever the committed selection actually
changes, so queries and catalogs can be recomposed before control returns to
the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from library.models import Facet, FacetKey

logger = logging.getLogger(__name__)

EMPTY: frozenset = frozenset()


@dataclass(frozen=True)
class FacetSelections:
    """Committed selection of every facet; immutable snapshot."""

    vendors: frozenset[str] = field(default=EMPTY)
    products: frozenset[int] = field(default=EMPTY)
    categories: frozenset[int] = field(default=EMPTY)
    modes: frozenset[int] = field(default=EMPTY)
    banks: frozenset[int] = field(default=EMPTY)

    def get(self, facet: Facet) -> frozenset:
        return getattr(self, Facet(facet).value)

    def with_facet(self, facet: Facet, keys: Collection[FacetKey]) -> "FacetSelections":
        return replace(self, **{Facet(facet).value: frozenset(keys)})

    def without(self, facet: Facet) -> "FacetSelections":
        """Copy with *facet*'s own selection emptied."""
        return self.with_facet(facet, EMPTY)

    def as_filters(self, exclude: Optional[Facet] = None) -> dict[Facet, frozenset]:
        return {f: self.get(f) for f in Facet if f is not exclude}

    @property
    def is_empty(self) -> bool:
        return not any(self.get(f) for f in Facet)


SelectionListener = Callable[[Facet, FacetSelections], None]


class FacetSelectionStore:
    """Pending/committed selection pairs for the five facets."""

    def __init__(self, initial: Optional[FacetSelections] = None):
        self._committed = initial or FacetSelections()
        self._pending: dict[Facet, set[FacetKey]] = {}
        self._listeners: list[SelectionListener] = []
        self._generation = 0

    # ── observation ───────────────────────────────────────────────────────

    @property
    def committed(self) -> FacetSelections:
        return self._committed

    @property
    def generation(self) -> int:
        """Incremented on every change of committed state."""
        return self._generation

    def pending(self, facet: Facet) -> frozenset:
        """The picker's working copy, or the committed set if it is closed."""
        facet = Facet(facet)
        if facet in self._pending:
            return frozenset(self._pending[facet])
        return self._committed.get(facet)

    def is_open(self, facet: Facet) -> bool:
        return Facet(facet) in self._pending

    def is_dirty(self, facet: Facet) -> bool:
        return self.pending(facet) != self._committed.get(facet)

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── editing ───────────────────────────────────────────────────────────

    def open_editor(self, facet: Facet) -> None:
        """Start an edit from the current committed selection.

        Re-opening an already open editor restarts it from committed state.
        """
        facet = Facet(facet)
        self._pending[facet] = set(self._committed.get(facet))

    def toggle(self, facet: Facet, key: FacetKey,
               offered: Optional[Collection[FacetKey]] = None) -> bool:
        """Flip *key* in *facet*'s pending selection.

        Opens the editor if needed. A key that is not pending and not in
        *offered* (the catalog currently shown) is ignored. Returns whether
        pending state changed.
        """
        facet = Facet(facet)
        if facet not in self._pending:
            self.open_editor(facet)
        pending = self._pending[facet]
        if key in pending:
            pending.discard(key)
            return True
        if offered is not None and key not in offered:
            logger.debug("Ignoring toggle of %r: not offered for %s", key, facet.value)
            return False
        pending.add(key)
        return True

    def clear_pending(self, facet: Facet) -> None:
        facet = Facet(facet)
        self._pending[facet] = set()

    def cancel(self, facet: Facet) -> None:
        """Discard the pending edit; committed state is untouched."""
        self._pending.pop(Facet(facet), None)

    def confirm(self, facet: Facet) -> bool:
        """Commit *facet*'s pending edit and close its editor.

        Returns True if the committed selection changed. Confirming a closed
        editor does nothing.
        """
        facet = Facet(facet)
        if facet not in self._pending:
            return False
        keys = frozenset(self._pending.pop(facet))
        return self._commit(facet, keys)

    def clear_committed(self, facet: Optional[Facet] = None) -> bool:
        """Empty the committed selection of *facet* (or every facet).

        Any open editor for the cleared facet is closed. Returns True if
        committed state changed.
        """
        facets = [Facet(facet)] if facet is not None else list(Facet)
        changed = False
        for f in facets:
            self._pending.pop(f, None)
            changed = self._commit(f, EMPTY) or changed
        return changed

    def _commit(self, facet: Facet, keys: frozenset) -> bool:
        if keys == self._committed.get(facet):
            return False
        self._committed = self._committed.with_facet(facet, keys)
        self._generation += 1
        logger.info("Committed %s: %d selected", facet.value, len(keys))
        for listener in list(self._listeners):
            listener(facet, self._committed)
        return True
