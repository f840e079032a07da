"""Tests for CandidateIndex scanning and snapshot replacement."""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType

import pytest

from tests.helpers.fake_sources import MemorySource
from tests.helpers.locale_files import LOCALE_FILES, STANDARD_ALLOWED
from variantloader.diagnostics import SourceUnavailableError
from variantloader.runtime.index import CandidateEntry, CandidateIndex
from variantloader.syntax.codec import FilenameCodec
from variantloader.validation import AllowedVariants


@pytest.fixture
def codec() -> FilenameCodec:
    return FilenameCodec(AllowedVariants(STANDARD_ALLOWED))


def _entry(base: str, locator: str, **variants: str) -> CandidateEntry:
    return CandidateEntry(base, MappingProxyType(variants), ".json", locator)


class TestScan:
    def test_groups_by_base_name(self, codec: FilenameCodec) -> None:
        index = CandidateIndex()
        asyncio.run(index.scan(MemorySource(LOCALE_FILES), codec))

        assert index.is_scanned
        assert set(index.base_names()) == {"strings", "profile"}
        assert [e.locator for e in index.candidates_for("strings")] == [
            "strings.json",
            "strings:es.json",
            "strings:es:formal.json",
            "strings:ja:polite.json",
        ]
        assert len(index) == len(LOCALE_FILES)

    def test_unparseable_names_skipped(
        self, codec: FilenameCodec, caplog: pytest.LogCaptureFixture
    ) -> None:
        source = MemorySource(
            {"strings.json": "{}", "strings:fr.json": "{}", "README.md": "", "::.json": ""}
        )
        index = CandidateIndex()
        with caplog.at_level(logging.DEBUG, logger="variantloader.runtime.index"):
            asyncio.run(index.scan(source, codec))

        assert [e.locator for e in index.candidates_for("strings")] == ["strings.json"]
        assert "3 skipped" in caplog.text
        assert "strings:fr.json" in caplog.text

    def test_first_scan_reports_all_bases_changed(self, codec: FilenameCodec) -> None:
        changed = asyncio.run(CandidateIndex().scan(MemorySource(LOCALE_FILES), codec))
        assert changed == frozenset({"strings", "profile"})

    def test_failed_scan_keeps_snapshot(self, codec: FilenameCodec) -> None:
        source = MemorySource(LOCALE_FILES)
        index = CandidateIndex()
        asyncio.run(index.scan(source, codec))
        before = index.candidates_for("strings")

        source.fail_listing = True
        with pytest.raises(SourceUnavailableError):
            asyncio.run(index.scan(source, codec))
        assert index.candidates_for("strings") == before

    def test_unknown_base(self, codec: FilenameCodec) -> None:
        index = CandidateIndex()
        asyncio.run(index.scan(MemorySource(LOCALE_FILES), codec))
        assert index.candidates_for("missing") == ()


class TestInstall:
    def test_changed_bases_only(self) -> None:
        index = CandidateIndex()
        index.install([_entry("a", "a.json"), _entry("b", "b.json")])

        changed = index.install(
            [_entry("a", "a.json"), _entry("b", "b.json"), _entry("b", "b:es.json", lang="es")]
        )
        assert changed == frozenset({"b"})

    def test_removed_base_reported(self) -> None:
        index = CandidateIndex()
        index.install([_entry("a", "a.json"), _entry("b", "b.json")])
        assert index.install([_entry("a", "a.json")]) == frozenset({"b"})
        assert index.candidates_for("b") == ()

    def test_reordering_counts_as_change(self) -> None:
        index = CandidateIndex()
        first, second = _entry("a", "a.json"), _entry("a", "a:es.json", lang="es")
        index.install([first, second])
        assert index.install([second, first]) == frozenset({"a"})

    def test_clear(self) -> None:
        index = CandidateIndex()
        index.install([_entry("a", "a.json")])
        index.clear()
        assert not index.is_scanned
        assert len(index) == 0


class TestAdd:
    def test_appends_new_entry(self) -> None:
        index = CandidateIndex()
        index.install([_entry("a", "a.json")])
        index.add(_entry("a", "a:es.json", lang="es"))
        assert [e.locator for e in index.candidates_for("a")] == ["a.json", "a:es.json"]

    def test_replaces_same_locator(self) -> None:
        index = CandidateIndex()
        original = _entry("a", "a.json")
        index.install([original, _entry("a", "a:es.json", lang="es")])
        replacement = CandidateEntry("a", MappingProxyType({}), ".json", "a.json")
        index.add(replacement)
        group = index.candidates_for("a")
        assert len(group) == 2
        assert group[0] is replacement

    def test_previous_snapshot_untouched(self) -> None:
        index = CandidateIndex()
        index.install([_entry("a", "a.json")])
        snapshot = index.candidates_for("a")
        index.add(_entry("a", "a:es.json", lang="es"))
        assert len(snapshot) == 1


class TestCandidateEntry:
    def test_is_base(self) -> None:
        assert _entry("a", "a.json").is_base
        assert not _entry("a", "a:es.json", lang="es").is_base
