"""
Pytest fixtures for the KK preset browser tests.

Builds a miniature komplete.db3 with the same tables Komplete Kontrol
writes, small enough that expected results can be worked out by hand:

  products   1 Alpha Synth (Acme, upid "up-alpha")
             2 Beta Keys   (Acme)
             3 Gamma Drums (Zeta)
             4 Unused      (content path no preset refers to)
  presets    1 "Pad 10"          Acme  Alpha  bank 1  cat 1    mode 1
             2 "pad 2"           Acme  Alpha  bank 1  cat 1    modes 1, 2
             3 "E-Piano Classic" Acme  Beta   bank 2  cat 2    mode 2
             4 "Kick Hard"       Zeta  Gamma  no bank cat 3    mode 3  (.wav)
             5 "Kick Soft"       Zeta  Gamma  no bank cat 3    mode 3
             6 "Orphan"          unknown content path, dropped on load

Natural preset order: 3, 4, 5, 2, 1.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from library.index import PresetLibrary  # noqa: E402
from library.loader import LibraryState, load_library  # noqa: E402
from utils.database import open_read_only  # noqa: E402

SCHEMA = """
    CREATE TABLE k_content_path (
        id INTEGER PRIMARY KEY, path TEXT, alias TEXT, upid TEXT
    );
    CREATE TABLE k_bank_chain (
        id INTEGER PRIMARY KEY, entry1 TEXT, entry2 TEXT, entry3 TEXT
    );
    CREATE TABLE k_category (
        id INTEGER PRIMARY KEY, category TEXT, subcategory TEXT, subsubcategory TEXT
    );
    CREATE TABLE k_mode (id INTEGER PRIMARY KEY, name TEXT);
    CREATE TABLE k_sound_info (
        id INTEGER PRIMARY KEY, name TEXT, vendor TEXT, comment TEXT,
        content_path_id INTEGER, file_name TEXT, bank_chain_id INTEGER
    );
    CREATE TABLE k_sound_info_category (sound_info_id INTEGER, category_id INTEGER);
    CREATE TABLE k_sound_info_mode (sound_info_id INTEGER, mode_id INTEGER);
"""

CONTENT_PATHS = [
    (1, "/lib/Alpha", "Alpha Synth", "up-alpha"),
    (2, "/lib/Beta", "Beta Keys", ""),
    (3, "/lib/Gamma", "Gamma Drums", None),
    (4, "/lib/Unused", "Unused", ""),
]

BANKS = [
    (1, "Factory", "Pads", ""),
    (2, "Factory", "Keys", None),
    (3, "Expansion", "", ""),
]

CATEGORIES = [
    (1, "Synth Pad", "Basic", ""),
    (2, "Piano / Keys", "Electric", ""),
    (3, "Drums", "Kick", None),
    (4, "Unreferenced", "", ""),
]

MODES = [(1, "Warm"), (2, "Bright"), (3, "Percussive")]

PRESETS = [
    (1, "Pad 10", "Acme", "soft glass", 1, "/lib/Alpha/Presets/Pad 10.nksf", 1),
    (2, "pad 2", "Acme", "airy", 1, "/lib/Alpha/Presets/pad 2.nksf", 1),
    (3, "E-Piano Classic", "Acme", "Vintage GLASS tone", 2,
     "/lib/Beta/Presets/E-Piano Classic.nksf", 2),
    (4, "Kick Hard", "Zeta", "punchy", 3, "/lib/Gamma/Kick Hard.wav", None),
    (5, "Kick Soft", "Zeta", None, 3, "/lib/Gamma/Kick Soft.nksf", 0),
    (6, "Orphan", "Acme", "", 99, "/elsewhere/Orphan.nksf", None),
]

PRESET_CATEGORIES = [(1, 1), (2, 1), (3, 2), (4, 3), (5, 3),
                     (1, 99), (77, 1)]     # last two dangle
PRESET_MODES = [(1, 1), (2, 1), (2, 2), (3, 2), (4, 3), (5, 3)]

NATURAL_ORDER = [3, 4, 5, 2, 1]


def create_kk_database(db_path: Path) -> Path:
    """Write the miniature browser database to *db_path*."""
    conn = sqlite3.connect(str(db_path))
    conn.executescript(SCHEMA)
    conn.executemany("INSERT INTO k_content_path VALUES (?,?,?,?)", CONTENT_PATHS)
    conn.executemany("INSERT INTO k_bank_chain VALUES (?,?,?,?)", BANKS)
    conn.executemany("INSERT INTO k_category VALUES (?,?,?,?)", CATEGORIES)
    conn.executemany("INSERT INTO k_mode VALUES (?,?)", MODES)
    conn.executemany("INSERT INTO k_sound_info VALUES (?,?,?,?,?,?,?)", PRESETS)
    conn.executemany("INSERT INTO k_sound_info_category VALUES (?,?)", PRESET_CATEGORIES)
    conn.executemany("INSERT INTO k_sound_info_mode VALUES (?,?)", PRESET_MODES)
    conn.commit()
    conn.close()
    return db_path


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def kk_db(tmp_path) -> Path:
    """Path to a freshly written miniature komplete.db3."""
    return create_kk_database(tmp_path / "komplete.db3")


@pytest.fixture()
def library(kk_db) -> PresetLibrary:
    """The miniature database loaded into a PresetLibrary."""
    conn = open_read_only(kk_db)
    try:
        return load_library(conn)
    finally:
        conn.close()


@pytest.fixture()
def library_state(library, kk_db) -> LibraryState:
    """A ready LibraryState that records previews instead of playing them."""
    played = []
    state = LibraryState.from_library(library, kk_db, preview_sink=played.append)
    state.played = played
    return state
