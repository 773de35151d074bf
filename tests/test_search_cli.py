"""
Tests for search_presets.py — the terminal search tool, run against the
miniature library in-process.
"""
import asyncio
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from browser.errors import FetchError
from browser.provider import LibraryProvider
from scripted import ScriptedProvider
from search_presets import build_parser, main, parse_filters, run
from library.models import Facet


@pytest.fixture()
def search(library_state, capsys, monkeypatch):
    """Run the CLI with *argv* over the miniature library; returns (code, stdout)."""
    monkeypatch.delenv("APP_PAGE_SIZE", raising=False)
    monkeypatch.delenv("APP_READY_TIMEOUT", raising=False)

    def _search(*argv):
        args = build_parser().parse_args(list(argv))
        code = asyncio.run(run(args, LibraryProvider(library_state)))
        return code, capsys.readouterr().out
    return _search


def test_parse_filters_dedupes_and_skips_unset():
    args = build_parser().parse_args(["--mode", "3", "--mode", "3", "--vendor", "Acme"])
    assert parse_filters(args) == {Facet.VENDOR: ["Acme"], Facet.MODE: [3]}


class TestRun:
    def test_text_search_table(self, search):
        code, out = search("glass")
        assert code == 0
        assert "E-Piano Classic" in out
        assert "Pad 10" in out
        assert "Showing 2 of 2 presets" in out
        assert "Text:" in out

    def test_no_results(self, search):
        code, out = search("nothing matches this")
        assert code == 0
        assert "No presets found" in out

    def test_json_with_filters_and_facets(self, search):
        code, out = search("--vendor", "Zeta", "--facets", "--json")
        assert code == 0
        data = json.loads(out)
        assert data["query"]["vendors"] == ["Zeta"]
        assert [p["id"] for p in data["results"]] == [4, 5]
        assert data["total"] == 2
        assert data["has_more"] is False
        assert [m["name"] for m in data["facets"]["modes"]] == ["Percussive"]
        assert data["facets"]["vendors"] == ["Acme", "Zeta"]

    def test_unreachable_filter_value_ignored(self, search):
        code, out = search("--vendor", "Zeta", "--product", "1")
        assert code == 0
        assert "products 1 matches nothing" in out
        assert "Kick Hard" in out

    def test_unavailable_catalog_does_not_reject_filters(self, library_state, capsys, monkeypatch):
        monkeypatch.delenv("APP_PAGE_SIZE", raising=False)
        monkeypatch.delenv("APP_READY_TIMEOUT", raising=False)

        class NoVendors(LibraryProvider):
            async def get_vendors(self, **kwargs):
                raise FetchError("vendors endpoint down", facet="vendors")

        args = build_parser().parse_args(["--vendor", "Zeta"])
        code = asyncio.run(run(args, NoVendors(library_state)))
        out = capsys.readouterr().out
        assert code == 0
        assert "vendors options unavailable" in out
        assert "matches nothing" not in out
        assert "Vendors:    Zeta" in out
        assert "Kick Hard" in out

    def test_paging(self, search):
        code, out = search("--pages", "2", "--page-size", "2")
        assert code == 0
        assert "Showing 4 of 5 presets (more available)" in out

    def test_summary_lists_selection(self, search):
        code, out = search("--mode", "3", "--mode", "1")
        assert code == 0
        # catalog order, not command-line order
        assert "Percussive and Warm" in out
        assert "Vendors:    All" in out

    def test_show_detail(self, search, library_state):
        code, out = search("kick", "--show", "5")
        assert code == 0
        assert "No bank" in out
        assert "Drums / Kick" in out
        assert library_state.played == []

    def test_show_json(self, search):
        code, out = search("--show", "3", "--json")
        detail = json.loads(out)["detail"]
        assert detail["product"] == "Beta Keys"
        assert detail["bank"] == "Factory / Keys"

    def test_show_not_loaded(self, search):
        code, out = search("--vendor", "Zeta", "--show", "1")
        assert code == 1
        assert "not among the loaded results" in out

    def test_library_never_ready(self, capsys):
        args = build_parser().parse_args(["--timeout", "0.05"])
        code = asyncio.run(run(args, ScriptedProvider(loading=True)))
        assert code == 2
        assert "did not become ready" in capsys.readouterr().out


def test_main_missing_database(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("APP_PROVIDER_URL", raising=False)
    with pytest.raises(SystemExit) as info:
        main(["--db", str(tmp_path / "missing.db3")])
    assert info.value.code == 1
    assert "Database not found" in capsys.readouterr().out
