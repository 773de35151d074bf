"""
KK Preset Browser — terminal search tool

Browse the Komplete Kontrol preset library from the command line: narrow
by vendor, product, category, mode and bank, match text against preset
names and comments, and page through the results.

Usage:
    python search_presets.py "pad"
    python search_presets.py "pad" --vendor "Native Instruments" --pages 3
    python search_presets.py --product 7 --product 9 --facets
    python search_presets.py "glass" --show 1001
    python search_presets.py "bass" --url http://localhost:8000 --json
"""

import argparse
import asyncio
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional

from browser.detail import value_label
from browser.errors import FetchStatus
from browser.provider import DataProvider, HttpProvider, LibraryProvider
from browser.session import PresetBrowser
from library.loader import LibraryState
from library.models import Facet, facet_key
from utils.config import AppConfig
from utils.formatting import TableFormatter, format_count, truncate_text

logger = logging.getLogger(__name__)

_FACET_ARGS = {
    Facet.VENDOR: "vendor",
    Facet.PRODUCT: "product",
    Facet.CATEGORY: "category",
    Facet.MODE: "mode",
    Facet.BANK: "bank",
}


def parse_filters(args: argparse.Namespace) -> dict:
    """Map the repeatable facet flags to {Facet: [keys]}; unset flags are omitted."""
    filters = {}
    for facet, dest in _FACET_ARGS.items():
        values = getattr(args, dest) or []
        if values:
            filters[facet] = list(dict.fromkeys(values))
    return filters


def make_provider(args: argparse.Namespace, cfg: AppConfig) -> Optional[DataProvider]:
    """Pick the HTTP or in-process provider; None if the database is missing."""
    url = args.url or cfg.provider_url
    if url:
        return HttpProvider(url)
    db_path = args.db or cfg.db_path
    state = LibraryState(db_path, preview_library_path=cfg.preview_library_path)
    if not state.db_found:
        print(f"ERROR: Database not found: {db_path}")
        print("Is Komplete Kontrol installed? Pass --db /path/to/komplete.db3 or --url.")
        return None
    state.start()
    return LibraryProvider(state)


async def apply_filters(browser: PresetBrowser, filters: dict) -> list:
    """Select and commit each facet's values; returns keys that were not offered."""
    ignored = []
    for facet, keys in filters.items():
        browser.open_editor(facet)
        for key in keys:
            if not browser.toggle(facet, key):
                ignored.append((facet, key))
        browser.confirm(facet)
        await browser.settle()
    return ignored


# ── Output ────────────────────────────────────────────────────────────────────

def display_results(browser: PresetBrowser) -> None:
    """Print the accumulated presets as a table."""
    results = browser.results.results
    if not results:
        print(f"\n  No presets found for: '{browser.text}'")
        return

    table = TableFormatter(["ID", "Name", "Product", "Vendor", "Comment"])
    for p in results:
        table.add_row([p.id, p.name, p.product_name, p.vendor, p.comment])
    print()
    table.print_table()
    more = " (more available)" if browser.results.has_more else ""
    print(f"\n  Showing {format_count(len(results))} of "
          f"{format_count(browser.results.total)} presets{more}")


def display_summary(browser: PresetBrowser) -> None:
    print(f"\n{'='*72}")
    for facet in Facet:
        print(f"  {facet.label + ':':<12}{browser.summary(facet)}")
    if browser.text:
        print(f"  {'Text:':<12}'{browser.text}'")
    print(f"{'='*72}")


def display_facets(browser: PresetBrowser) -> None:
    """Print the values still reachable in each facet."""
    for facet in Facet:
        catalog = browser.catalogs.catalog(facet)
        print(f"\n  {facet.label.upper()} ({len(catalog)})")
        for value in catalog:
            key = facet_key(facet, value)
            label = truncate_text(value_label(facet, value), 60)
            prefix = "" if facet is Facet.VENDOR else f"{key:>6}  "
            print(f"    {prefix}{label}")


def display_detail(detail) -> None:
    print(f"\n{'='*72}")
    print(f"  {detail.name}")
    print(f"{'='*72}")
    if detail.comment:
        print(textwrap.fill(detail.comment, width=70, initial_indent="    ",
                            subsequent_indent="    "))
    for label, value in (("Vendor", detail.vendor), ("Product", detail.product),
                         ("Bank", detail.bank), ("Categories", detail.categories),
                         ("Modes", detail.modes), ("File", detail.file_name)):
        print(f"    {label + ':':<12}{value}")


def to_json(browser: PresetBrowser, show_facets: bool, detail=None) -> dict:
    data = {
        "query": {
            **{f.value: sorted(browser.selections.get(f)) for f in Facet},
            "text": browser.text,
        },
        "total": browser.results.total,
        "has_more": browser.results.has_more,
        "results": [p.to_dict() for p in browser.results.results],
    }
    if show_facets:
        data["facets"] = {
            f.value: [v if f is Facet.VENDOR else v.to_dict()
                      for v in browser.catalogs.catalog(f)]
            for f in Facet
        }
    if detail is not None:
        data["detail"] = detail.to_dict()
    return data


# ── Session ───────────────────────────────────────────────────────────────────

async def run(args: argparse.Namespace, provider: DataProvider,
              cfg: Optional[AppConfig] = None) -> int:
    """Run one search against *provider* and print it. Returns an exit code."""
    cfg = cfg or AppConfig.from_env()
    browser = PresetBrowser(
        provider,
        page_size=args.page_size or cfg.page_size,
        ready_interval=cfg.ready_poll_interval,
        ready_timeout=args.timeout if args.timeout is not None else cfg.ready_timeout,
    )
    if not await browser.start():
        print("ERROR: The preset library did not become ready.")
        return 2
    if browser.failed_catalogs:
        await browser.refresh_catalogs()
    for facet, error in browser.failed_catalogs.items():
        print(f"  Note: {facet.value} options unavailable ({error}); filters not checked")

    ignored = await apply_filters(browser, parse_filters(args))
    for facet, key in ignored:
        print(f"  Note: {facet.value} {key!r} matches nothing with the other filters; ignored")
    browser.set_text(args.query or "")
    await browser.settle()

    for _ in range(max(args.pages, 1) - 1):
        status = await browser.load_more()
        if status is not FetchStatus.APPLIED:
            break

    if browser.results.last_error is not None:
        print(f"ERROR: {browser.results.last_error}")
        return 1

    detail = None
    if args.show is not None:
        detail = browser.select(args.show)
        await browser.settle()
        if detail is None:
            print(f"ERROR: Preset {args.show} is not among the loaded results.")
            return 1

    if args.json:
        print(json.dumps(to_json(browser, args.facets, detail), indent=2))
        return 0

    display_summary(browser)
    if args.facets:
        display_facets(browser)
    display_results(browser)
    if detail is not None:
        display_detail(detail)
    return 0


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search the Komplete Kontrol preset library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
            Examples:
              python search_presets.py "pad"
              python search_presets.py "pad" --vendor "Native Instruments"
              python search_presets.py --category 12 --mode 3 --pages 4
              python search_presets.py "glass" --show 1001
              python search_presets.py --facets --json
        """),
    )
    parser.add_argument("query", nargs="?", default="",
                        help="Text matched against preset names and comments")
    parser.add_argument("--db", type=Path, default=None,
                        help="Path to komplete.db3 (default: APP_DB_PATH or the "
                             "Komplete Kontrol location)")
    parser.add_argument("--url", default=None,
                        help="Use a running API server instead of the local database")
    parser.add_argument("--vendor", action="append", default=[],
                        help="Filter by vendor name (repeatable)")
    parser.add_argument("--product", action="append", type=int, default=[],
                        help="Filter by product ID (repeatable)")
    parser.add_argument("--category", action="append", type=int, default=[],
                        help="Filter by category ID (repeatable)")
    parser.add_argument("--mode", action="append", type=int, default=[],
                        help="Filter by mode ID (repeatable)")
    parser.add_argument("--bank", action="append", type=int, default=[],
                        help="Filter by bank chain ID (repeatable)")
    parser.add_argument("--pages", type=int, default=1,
                        help="Number of pages to load (default: 1)")
    parser.add_argument("--page-size", type=int, default=None,
                        help="Presets per page (default: APP_PAGE_SIZE or 50)")
    parser.add_argument("--facets", action="store_true",
                        help="Show the values still reachable in each facet")
    parser.add_argument("--show", type=int, default=None, metavar="ID",
                        help="Show a loaded preset's details and play its preview")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for the library to load")
    parser.add_argument("--json", action="store_true",
                        help="Print results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log progress to stderr")
    return parser


def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    cfg = AppConfig.from_env()
    provider = make_provider(args, cfg)
    if provider is None:
        sys.exit(1)

    async def session() -> int:
        try:
            return await run(args, provider, cfg)
        finally:
            if isinstance(provider, HttpProvider):
                await provider.aclose()

    sys.exit(asyncio.run(session()))


if __name__ == "__main__":
    main()
