"""
Load the Komplete Kontrol browser database into a PresetLibrary.

The database belongs to Komplete Kontrol; it is opened read-only and read
once. Loading tens of thousands of presets takes a noticeable moment, so
LibraryState runs it on a background thread and exposes a ``loading`` flag
that clients poll before issuing queries.

Source tables:
    k_sound_info            presets
    k_content_path          products (alias = product name)
    k_bank_chain            banks
    k_category              categories
    k_mode                  modes
    k_sound_info_category   preset <-> category
    k_sound_info_mode       preset <-> mode
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Optional

from library.index import PresetLibrary
from library.models import NO_BANK, Bank, Category, Mode, Preset, Product
from library.previews import PreviewSink, log_preview, resolve_preview_path
from utils.database import open_read_only, query_to_dicts, table_exists
from utils.strings import natural_key, natural_keys

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "k_sound_info",
    "k_content_path",
    "k_bank_chain",
    "k_category",
    "k_mode",
    "k_sound_info_category",
    "k_sound_info_mode",
)


class LibraryLoadError(Exception):
    """The database exists but is not a usable browser database."""


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def load_library(conn: sqlite3.Connection) -> PresetLibrary:
    """Read every browser table from *conn* and build a PresetLibrary.

    Rows that reference a missing product are dropped; associations that
    reference a missing preset, category, mode or bank are skipped. Both are
    logged as warnings with a count.

    Raises:
        LibraryLoadError: If a required table is missing.
    """
    missing = [t for t in REQUIRED_TABLES if not table_exists(conn, t)]
    if missing:
        raise LibraryLoadError(f"Not a browser database, missing tables: {', '.join(missing)}")

    vendors = sorted(
        {r["vendor"] for r in query_to_dicts(conn, "SELECT DISTINCT vendor FROM k_sound_info")
         if r["vendor"]},
        key=natural_key,
    )

    banks = sorted(
        (
            Bank(id=r["id"], entry1=_text(r["entry1"]),
                 entry2=_text(r["entry2"]), entry3=_text(r["entry3"]))
            for r in query_to_dicts(conn, "SELECT id, entry1, entry2, entry3 FROM k_bank_chain")
        ),
        key=lambda b: natural_keys(*b.levels),
    )
    bank_ids = {b.id for b in banks}

    content_paths = {
        r["id"]: r
        for r in query_to_dicts(conn, "SELECT id, path, alias, upid FROM k_content_path")
    }
    products: dict[int, Product] = {}
    for r in query_to_dicts(conn, "SELECT DISTINCT content_path_id, vendor FROM k_sound_info"):
        pid = r["content_path_id"]
        if pid not in content_paths or pid in products:
            continue
        cp = content_paths[pid]
        products[pid] = Product(
            id=pid,
            name=_text(cp["alias"]),
            vendor=_text(r["vendor"]),
            content_dir=_text(cp["path"]),
            upid=_text(cp["upid"]),
        )

    categories = sorted(
        (
            Category(id=r["id"], name=_text(r["category"]),
                     subcategory=_text(r["subcategory"]),
                     subsubcategory=_text(r["subsubcategory"]))
            for r in query_to_dicts(
                conn, "SELECT id, category, subcategory, subsubcategory FROM k_category")
        ),
        key=lambda c: natural_keys(*c.levels),
    )
    category_ids = {c.id for c in categories}

    modes = sorted(
        (Mode(id=r["id"], name=_text(r["name"]))
         for r in query_to_dicts(conn, "SELECT id, name FROM k_mode")),
        key=lambda m: natural_key(m.name),
    )
    mode_ids = {m.id for m in modes}

    rows = query_to_dicts(
        conn,
        "SELECT id, name, vendor, comment, content_path_id, file_name, bank_chain_id "
        "FROM k_sound_info",
    )
    preset_rows = {}
    orphaned = 0
    for r in rows:
        if r["content_path_id"] not in products:
            orphaned += 1
            continue
        preset_rows[r["id"]] = r
    if orphaned:
        logger.warning("Skipped %d presets with an unknown content path", orphaned)

    preset_categories: dict[int, list[int]] = defaultdict(list)
    skipped = 0
    for r in query_to_dicts(conn, "SELECT sound_info_id, category_id FROM k_sound_info_category"):
        if r["sound_info_id"] in preset_rows and r["category_id"] in category_ids:
            preset_categories[r["sound_info_id"]].append(r["category_id"])
        else:
            skipped += 1
    if skipped:
        logger.warning("Skipped %d dangling preset/category associations", skipped)

    preset_modes: dict[int, list[int]] = defaultdict(list)
    skipped = 0
    for r in query_to_dicts(conn, "SELECT sound_info_id, mode_id FROM k_sound_info_mode"):
        if r["sound_info_id"] in preset_rows and r["mode_id"] in mode_ids:
            preset_modes[r["sound_info_id"]].append(r["mode_id"])
        else:
            skipped += 1
    if skipped:
        logger.warning("Skipped %d dangling preset/mode associations", skipped)

    presets = []
    unknown_banks = 0
    for pid, r in preset_rows.items():
        bank = r["bank_chain_id"] or NO_BANK
        if bank != NO_BANK and bank not in bank_ids:
            unknown_banks += 1
            bank = NO_BANK
        product = products[r["content_path_id"]]
        presets.append(Preset(
            id=pid,
            name=_text(r["name"]),
            comment=_text(r["comment"]),
            vendor=_text(r["vendor"]),
            product_id=product.id,
            product_name=product.name,
            file_name=_text(r["file_name"]),
            bank=bank,
            categories=tuple(dict.fromkeys(preset_categories.get(pid, ()))),
            modes=tuple(dict.fromkeys(preset_modes.get(pid, ()))),
        ))
    if unknown_banks:
        logger.warning("Cleared %d references to unknown banks", unknown_banks)
    presets.sort(key=lambda p: (natural_key(p.name), p.id))

    return PresetLibrary(
        vendors=vendors,
        products=sorted(products.values(), key=lambda p: (natural_key(p.name), p.id)),
        categories=categories,
        modes=modes,
        banks=banks,
        presets=presets,
    )


class LibraryNotReady(Exception):
    """The library is still loading, failed to load or has no database."""


class LibraryState:
    """Owns the loaded library and its readiness flags.

    ``loading`` starts True and flips to False once a background load has
    finished, whether it succeeded or not; ``error`` then says which. A
    missing database file is not an error: ``db_found`` is simply False.
    """

    def __init__(
        self,
        db_path: Path,
        preview_library_path: Optional[Path] = None,
        preview_sink: Optional[PreviewSink] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.preview_library_path = preview_library_path
        self.preview_sink: PreviewSink = preview_sink or log_preview
        self.db_found = self.db_path.exists()
        self.loading = self.db_found
        self.library: PresetLibrary | None = None
        self.error: str | None = None
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._done = threading.Event()
        if not self.db_found:
            self._done.set()

    @classmethod
    def from_library(
        cls,
        library: PresetLibrary,
        db_path: Path | None = None,
        preview_sink: Optional[PreviewSink] = None,
    ) -> "LibraryState":
        """Wrap an already-built library (tests, embedding)."""
        state = cls(db_path or Path(":memory:"), preview_sink=preview_sink)
        state.db_found = True
        state.library = library
        state.loading = False
        state._done.set()
        return state

    @property
    def ready(self) -> bool:
        return not self.loading and self.library is not None

    def start(self) -> None:
        """Begin loading on a daemon thread; a no-op if already started."""
        with self._lock:
            if self._thread is not None or not self.db_found or self._done.is_set():
                return
            self._thread = threading.Thread(
                target=self._load, name="library-loader", daemon=True
            )
            self._thread.start()

    def load(self) -> None:
        """Load synchronously on the calling thread."""
        with self._lock:
            if self._done.is_set():
                return
        self._load()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until loading finished; returns False on timeout."""
        return self._done.wait(timeout)

    def require(self) -> PresetLibrary:
        """Return the loaded library or raise LibraryNotReady."""
        library = self.library
        if library is None:
            if not self.db_found:
                raise LibraryNotReady(f"Database not found: {self.db_path}")
            if self.loading:
                raise LibraryNotReady("Library is loading")
            raise LibraryNotReady(f"Library failed to load: {self.error}")
        return library

    def activate(self, preset_id: int) -> Optional[Path]:
        """Resolve *preset_id*'s preview and hand it to the preview sink.

        Returns the preview path, or None when the preset has no preview.

        Raises:
            LibraryNotReady: If the library is not loaded.
            KeyError: If no preset has that id.
        """
        library = self.require()
        preset = library.get_preset(preset_id)
        if preset is None:
            raise KeyError(preset_id)
        path = resolve_preview_path(
            preset, library.get_product(preset.product_id), self.preview_library_path
        )
        if path is None:
            logger.debug("No preview for preset %d (%s)", preset.id, preset.file_name)
            return None
        self.preview_sink(path)
        return path

    def _load(self) -> None:
        t0 = time.monotonic()
        logger.info("Loading preset library from %s", self.db_path)
        try:
            conn = open_read_only(self.db_path)
            try:
                library = load_library(conn)
            finally:
                conn.close()
        except (sqlite3.Error, LibraryLoadError) as exc:
            logger.error("Failed to load preset library: %s", exc)
            with self._lock:
                self.error = str(exc)
                self.loading = False
            self._done.set()
            return
        with self._lock:
            self.library = library
            self.loading = False
        self._done.set()
        logger.info(
            "Loaded %d presets in %.2fs", len(library), time.monotonic() - t0
        )
