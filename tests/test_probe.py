"""Tests for ProbeIndex: planning, memoization and shared in-flight probes."""

from __future__ import annotations

import asyncio

import pytest

from tests.helpers.fake_sources import MemoryProbeSource
from variantloader.constants import MAX_PROBE_DIMENSIONS
from variantloader.diagnostics import SourceUnavailableError
from variantloader.enums import ProbeState
from variantloader.runtime.probe import ProbeIndex
from variantloader.syntax.codec import FilenameCodec
from variantloader.validation import PERMISSIVE


@pytest.fixture
def codec() -> FilenameCodec:
    return FilenameCodec(PERMISSIVE, (".json", ".yaml"))


class TestPlan:
    def test_largest_subset_first(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        planned = index.plan("strings", {"form": "formal", "lang": "es"})
        assert [entry.locator for entry in planned] == [
            "strings:es:formal.json",
            "strings:es:formal.yaml",
            "strings:es.json",
            "strings:es.yaml",
            "strings:formal.json",
            "strings:formal.yaml",
            "strings.json",
            "strings.yaml",
        ]

    def test_empty_context_plans_base_only(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        assert [e.locator for e in index.plan("strings", {})] == ["strings.json", "strings.yaml"]

    def test_subset_count(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        context = {"lang": "es", "gender": "f", "form": "formal", "tone": "surfer"}
        assert len(index.plan("strings", context)) == 2**4 * 2

    def test_dimensions_beyond_limit_not_planned(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        context = {"lang": "es"} | {f"d{i:02d}": "v" for i in range(20)}
        planned = index.plan("strings", context)

        assert len(planned) == 2**MAX_PROBE_DIMENSIONS * 2
        kept = {"lang"} | {f"d{i:02d}" for i in range(MAX_PROBE_DIMENSIONS - 1)}
        assert set(planned[0].variants) == kept
        assert all(set(entry.variants) <= kept for entry in planned)


class TestCandidatesFor:
    def test_only_existing_returned(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}", "strings:es.yaml": "{}"})
        index = ProbeIndex(source, codec)
        found = asyncio.run(index.candidates_for("strings", {"lang": "es"}))
        assert [e.locator for e in found] == ["strings:es.yaml", "strings.json"]
        assert dict(found[0].variants) == {"lang": "es"}

    def test_memoized(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        index = ProbeIndex(source, codec)

        async def run() -> None:
            await index.candidates_for("strings", {"lang": "es"})
            await index.candidates_for("strings", {"lang": "es"})

        asyncio.run(run())
        assert set(source.probes.values()) == {1}
        assert index.state_of("strings.json") is ProbeState.EXISTS
        assert index.state_of("strings:es.json") is ProbeState.ABSENT
        assert index.state_of("other.json") is ProbeState.UNKNOWN

    def test_concurrent_probes_share_task(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        index = ProbeIndex(source, codec)

        async def run() -> list[ProbeState]:
            return await asyncio.gather(*(index.probe("strings.json") for _ in range(10)))

        states = asyncio.run(run())
        assert states == [ProbeState.EXISTS] * 10
        assert source.probes["strings.json"] == 1

    def test_failed_probe_stays_unknown(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        source.failing.add("strings:es.json")
        index = ProbeIndex(source, codec)

        with pytest.raises(SourceUnavailableError):
            asyncio.run(index.candidates_for("strings", {"lang": "es"}))
        assert index.state_of("strings:es.json") is ProbeState.UNKNOWN

        source.failing.clear()
        found = asyncio.run(index.candidates_for("strings", {"lang": "es"}))
        assert [e.locator for e in found] == ["strings.json"]
        assert source.probes["strings:es.json"] == 2


class TestMemoControl:
    def test_mark(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource()
        index = ProbeIndex(source, codec)
        index.mark("strings.json", ProbeState.EXISTS)
        assert asyncio.run(index.probe("strings.json")) is ProbeState.EXISTS
        assert source.probes["strings.json"] == 0

    def test_forget_base(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        index.mark("strings.json", ProbeState.ABSENT)
        index.mark("strings:es.json", ProbeState.ABSENT)
        index.mark("profile.json", ProbeState.EXISTS)
        index.forget("strings")
        assert index.state_of("strings.json") is ProbeState.UNKNOWN
        assert index.state_of("strings:es.json") is ProbeState.UNKNOWN
        assert index.state_of("profile.json") is ProbeState.EXISTS

    def test_clear(self, codec: FilenameCodec) -> None:
        index = ProbeIndex(MemoryProbeSource(), codec)
        index.mark("strings.json", ProbeState.EXISTS)
        index.clear()
        assert index.state_of("strings.json") is ProbeState.UNKNOWN

    def test_memo_is_lru_bounded(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"a.json": "{}"})
        index = ProbeIndex(source, codec, maxsize=2)

        async def run() -> None:
            await index.probe("a.json")
            await index.probe("b.json")
            await index.probe("a.json")
            await index.probe("c.json")

        asyncio.run(run())
        assert len(index) == 2
        assert index.state_of("a.json") is ProbeState.EXISTS
        assert index.state_of("b.json") is ProbeState.UNKNOWN
        assert index.state_of("c.json") is ProbeState.ABSENT
        assert source.probes["a.json"] == 1

    def test_invalid_maxsize(self, codec: FilenameCodec) -> None:
        with pytest.raises(ValueError, match="maxsize must be positive"):
            ProbeIndex(MemoryProbeSource(), codec, maxsize=0)


class TestInFlightProbes:
    """Memo control while probes are still running."""

    def test_clear_does_not_abort_waiters(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        source.delay = 0.05
        index = ProbeIndex(source, codec)

        async def run() -> ProbeState:
            waiter = asyncio.create_task(index.probe("strings.json"))
            await asyncio.sleep(0.01)
            index.clear()
            return await waiter

        assert asyncio.run(run()) is ProbeState.EXISTS
        assert index.state_of("strings.json") is ProbeState.UNKNOWN

    def test_probe_after_clear_starts_fresh(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        source.delay = 0.05
        index = ProbeIndex(source, codec)

        async def run() -> tuple[ProbeState, ProbeState]:
            first = asyncio.create_task(index.probe("strings.json"))
            await asyncio.sleep(0.01)
            index.clear()
            second = await index.probe("strings.json")
            return await first, second

        assert asyncio.run(run()) == (ProbeState.EXISTS, ProbeState.EXISTS)
        assert source.probes["strings.json"] == 2
        assert index.state_of("strings.json") is ProbeState.EXISTS

    def test_forget_during_probe(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}", "profile.json": "{}"})
        index = ProbeIndex(source, codec)
        asyncio.run(index.probe("profile.json"))
        source.delay = 0.05

        async def run() -> ProbeState:
            waiter = asyncio.create_task(index.probe("strings.json"))
            await asyncio.sleep(0.01)
            index.forget("strings")
            return await waiter

        assert asyncio.run(run()) is ProbeState.EXISTS
        assert index.state_of("strings.json") is ProbeState.UNKNOWN
        assert index.state_of("profile.json") is ProbeState.EXISTS

    def test_close_cancels_in_flight(self, codec: FilenameCodec) -> None:
        source = MemoryProbeSource({"strings.json": "{}"})
        source.delay = 0.05
        index = ProbeIndex(source, codec)

        async def run() -> object:
            waiter = asyncio.create_task(index.probe("strings.json"))
            await asyncio.sleep(0.01)
            index.close()
            return (await asyncio.gather(waiter, return_exceptions=True))[0]

        assert isinstance(asyncio.run(run()), asyncio.CancelledError)
        assert len(index) == 0
