"""
Tests for browser/session.py — a whole browsing session over a scripted
provider (for race ordering) and over the miniature library.
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import NATURAL_ORDER
from scripted import ScriptedProvider, make_page, spin
from browser.detail import NO_BANK_LABEL
from browser.errors import FetchError, FetchStatus
from browser.provider import LibraryProvider
from browser.session import PresetBrowser
from library.models import Bank, Category, Facet, Mode, Product

ALPHA = Product(id=1, name="Alpha Synth", vendor="Acme")
BETA = Product(id=2, name="Beta Keys", vendor="Acme")
SEVEN = Product(id=7, name="Seven", vendor="Zeta")

CANNED = {
    "get_vendors": ["Acme", "Zeta"],
    "get_products": [ALPHA, BETA, SEVEN],
    "get_categories": [Category(1, "Synth Pad")],
    "get_modes": [Mode(1, "Warm"), Mode(2, "Bright")],
    "get_banks": [Bank(1, "Factory")],
}


def answer_all(provider, page=None):
    """Resolve every pending call with canned catalogs and *page*."""
    for call in provider.pending():
        if call.name == "get_presets":
            call.resolve(page or make_page(call.kwargs["offset"], 50, 4000))
        elif call.name == "activate_preset":
            call.resolve(None)
        else:
            call.resolve(CANNED[call.name])


async def started(provider, **kwargs):
    browser = PresetBrowser(provider, ready_interval=0.001, **kwargs)
    task = asyncio.ensure_future(browser.start())
    await spin()
    answer_all(provider)
    assert await task is True
    return browser


class TestStart:
    def test_initial_query_and_page(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            call, = provider.named("get_presets")
            assert call.kwargs["vendors"] == []
            assert call.kwargs["query"] == ""
            assert (call.kwargs["offset"], call.kwargs["limit"]) == (0, 50)
            assert len(browser.results.results) == 50
            assert browser.results.total == 4000
            assert browser.results.has_more
            assert browser.catalogs.catalog(Facet.VENDOR) == ["Acme", "Zeta"]

        asyncio.run(scenario())

    def test_not_ready_issues_no_queries(self):
        async def scenario():
            provider = ScriptedProvider(loading=True)
            browser = PresetBrowser(provider, ready_interval=0.01, ready_timeout=0.05)
            assert await browser.start() is False
            assert provider.loading_probes >= 1
            assert provider.calls == []

            browser.store.toggle(Facet.VENDOR, "Acme")
            browser.confirm(Facet.VENDOR)
            assert await browser.load_more() is FetchStatus.NOT_READY
            statuses = await browser.refresh_catalogs()
            assert set(statuses.values()) == {FetchStatus.NOT_READY}
            await spin()
            assert provider.calls == []

        asyncio.run(scenario())

    def test_waits_for_loading_to_finish(self):
        async def scenario():
            provider = ScriptedProvider(loading=True)
            browser = PresetBrowser(provider, ready_interval=0.001)
            task = asyncio.ensure_future(browser.start())
            await asyncio.sleep(0.01)
            assert provider.calls == []
            provider.loading = False
            await asyncio.sleep(0.01)
            await spin()
            answer_all(provider)
            assert await task is True

        asyncio.run(scenario())

    def test_failed_catalog_is_reported_and_retried(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = PresetBrowser(provider, ready_interval=0.001)
            task = asyncio.ensure_future(browser.start())
            await spin()
            provider.pending("get_vendors")[0].fail(FetchError("down", facet="vendors"))
            answer_all(provider)
            assert await task is True
            assert browser.catalog_status[Facet.VENDOR] is FetchStatus.FAILED
            assert browser.catalog_status[Facet.MODE] is FetchStatus.APPLIED
            assert set(browser.failed_catalogs) == {Facet.VENDOR}
            # still selectable while its catalog is missing
            assert browser.toggle(Facet.VENDOR, "Acme")
            browser.cancel(Facet.VENDOR)

            retry = asyncio.ensure_future(browser.refresh_catalogs())
            await spin()
            assert [c.name for c in provider.pending()] == ["get_vendors"]
            answer_all(provider)
            statuses = await retry
            assert statuses[Facet.VENDOR] is FetchStatus.APPLIED
            assert statuses[Facet.MODE] is FetchStatus.UNCHANGED
            assert browser.failed_catalogs == {}
            assert browser.toggle(Facet.VENDOR, "Nowhere") is False

        asyncio.run(scenario())


class TestCommit:
    def test_confirm_resets_and_refetches(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            browser.open_editor(Facet.VENDOR)
            assert browser.toggle(Facet.VENDOR, "Acme")
            assert browser.confirm(Facet.VENDOR)
            assert browser.selections.vendors == {"Acme"}
            assert browser.results.results == ()
            await spin()
            page_call = provider.pending("get_presets")[0]
            assert page_call.kwargs["vendors"] == ["Acme"]
            assert page_call.kwargs["offset"] == 0
            # the vendor catalog does not depend on the vendor selection
            assert provider.pending("get_vendors") == []
            assert provider.pending("get_products")[0].kwargs["vendors"] == ["Acme"]
            answer_all(provider, make_page(0, 3, 3))
            await browser.settle()
            assert len(browser.results.results) == 3
            assert browser.summary(Facet.VENDOR) == "Acme"

        asyncio.run(scenario())

    def test_cancel_issues_nothing(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            before = len(provider.calls)
            browser.open_editor(Facet.PRODUCT)
            assert browser.toggle(Facet.PRODUCT, 7)
            browser.cancel(Facet.PRODUCT)
            await spin()
            assert browser.selections.products == frozenset()
            assert len(provider.calls) == before
            assert len(browser.results.results) == 50

        asyncio.run(scenario())

    def test_toggle_value_not_offered(self):
        async def scenario():
            browser = await started(ScriptedProvider())
            assert browser.toggle(Facet.PRODUCT, 99) is False
            assert browser.store.pending(Facet.PRODUCT) == frozenset()

        asyncio.run(scenario())

    def test_only_latest_commit_catalog_applied(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            browser.toggle(Facet.VENDOR, "Acme")
            browser.confirm(Facet.VENDOR)
            browser.toggle(Facet.MODE, 2)
            browser.confirm(Facet.MODE)
            await spin()
            first, second = provider.pending("get_products")
            assert first.kwargs["modes"] == []
            assert second.kwargs["modes"] == [2]
            second.resolve([BETA])
            first.resolve([ALPHA, BETA])
            answer_all(provider, make_page(0, 1, 1))
            await browser.settle()
            assert browser.catalogs.catalog(Facet.PRODUCT) == [BETA]
            page_calls = provider.named("get_presets")
            assert page_calls[-1].kwargs["modes"] == [2]

        asyncio.run(scenario())

    def test_clear_committed(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            browser.toggle(Facet.MODE, 1)
            browser.confirm(Facet.MODE)
            await spin()
            answer_all(provider)
            await browser.settle()
            assert browser.clear() is True
            assert browser.selections.is_empty
            await spin()
            assert provider.pending("get_presets")[0].kwargs["modes"] == []
            answer_all(provider)
            await browser.settle()

        asyncio.run(scenario())


class TestTextAndPaging:
    def test_text_change_skips_catalogs(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            before = len(provider.calls)
            browser.set_text("pad")
            await spin()
            new_calls = provider.calls[before:]
            assert [c.name for c in new_calls] == ["get_presets"]
            assert new_calls[0].kwargs["query"] == "pad"
            browser.set_text("pad")
            await spin()
            assert len(provider.calls) == before + 1
            answer_all(provider)
            await browser.settle()

        asyncio.run(scenario())

    def test_load_more_requests_next_offset(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            task = asyncio.ensure_future(browser.load_more())
            await spin()
            assert provider.pending("get_presets")[0].kwargs["offset"] == 50
            answer_all(provider)
            assert await task is FetchStatus.APPLIED
            assert len(browser.results.results) == 100

        asyncio.run(scenario())


class TestSelect:
    def test_select_projects_and_activates(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            detail = browser.select(3)
            assert detail.id == 3
            assert browser.selected.id == 3
            await spin()
            assert provider.pending("activate_preset")[0].kwargs["preset_id"] == 3
            answer_all(provider)
            await browser.settle()

        asyncio.run(scenario())

    def test_select_unknown_id(self):
        async def scenario():
            provider = ScriptedProvider()
            browser = await started(provider)
            assert browser.select(123456) is None
            assert browser.selected is None
            await spin()
            assert provider.named("activate_preset") == []

        asyncio.run(scenario())


class TestOverLibrary:
    def test_session_over_miniature_library(self, library_state):
        async def scenario():
            browser = PresetBrowser(LibraryProvider(library_state), page_size=2)
            assert await browser.start() is True
            assert [p.id for p in browser.results.results] == NATURAL_ORDER[:2]
            while browser.results.has_more:
                await browser.load_more()
            assert [p.id for p in browser.results.results] == NATURAL_ORDER

            browser.toggle(Facet.VENDOR, "Zeta")
            browser.confirm(Facet.VENDOR)
            await browser.settle()
            assert [p.id for p in browser.results.results] == [4, 5]
            assert [m.name for m in browser.catalogs.catalog(Facet.MODE)] == ["Percussive"]

            detail = browser.select(5)
            await browser.settle()
            assert detail.bank == NO_BANK_LABEL
            assert detail.categories == "Drums / Kick"
            assert browser.activator.last_error is None

        asyncio.run(scenario())

    def test_text_search(self, library_state):
        async def scenario():
            browser = PresetBrowser(LibraryProvider(library_state))
            await browser.start()
            browser.set_text("glass")
            await browser.settle()
            assert sorted(p.id for p in browser.results.results) == [1, 3]

        asyncio.run(scenario())
