"""Lazy candidate index for sources that cannot be listed.

Remote endpoints reachable only by existence checks are never enumerated.
Instead, for each request the index materializes the filenames that could
possibly win (every subset of the validated context, times each extension),
probes them, and memoizes a tri-state per locator so neither hits nor misses
cost a second round trip.

Bounds:
    - At most MAX_PROBE_DIMENSIONS dimensions are planned per request
      (built-ins first, then custom dimensions by name), so one request
      costs at most 2**MAX_PROBE_DIMENSIONS probes per extension.
    - The memo is an LRU of DEFAULT_PROBE_MEMO_SIZE locators.

Concurrency:
    Concurrent probes for the same locator share one in-flight task.
    clear() and forget() only drop memoized answers; probes already running
    finish for the callers waiting on them, but their answers are not
    written back. Only close() cancels in-flight probes.

Python 3.13+.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import OrderedDict
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from variantloader.constants import DEFAULT_PROBE_MEMO_SIZE, MAX_PROBE_DIMENSIONS
from variantloader.diagnostics import VariantParseError
from variantloader.enums import ProbeState
from variantloader.runtime.index import CandidateEntry
from variantloader.syntax.codec import variant_sort_key

if TYPE_CHECKING:
    from variantloader.loading.sources import ProbeSource
    from variantloader.syntax.codec import FilenameCodec

__all__ = ["ProbeIndex"]

logger = logging.getLogger(__name__)


class ProbeIndex:
    """Existence-probe index with per-locator memoization.

    Candidate discovery order is largest variant subset first, then
    extension priority, so ties resolve toward the most specific file.
    """

    __slots__ = ("_codec", "_generation", "_maxsize", "_pending", "_source", "_states")

    def __init__(
        self,
        source: ProbeSource,
        codec: FilenameCodec,
        maxsize: int = DEFAULT_PROBE_MEMO_SIZE,
    ) -> None:
        """Initialize probe index.

        Args:
            source: Source answering existence probes
            codec: Codec used to build candidate filenames
            maxsize: Maximum number of memoized locators

        Raises:
            ValueError: If maxsize is not positive
        """
        if maxsize <= 0:
            msg = "maxsize must be positive"
            raise ValueError(msg)
        self._source = source
        self._codec = codec
        self._maxsize = maxsize
        self._states: OrderedDict[str, ProbeState] = OrderedDict()
        self._pending: dict[str, asyncio.Task[ProbeState]] = {}
        self._generation = 0

    def plan(self, base_name: str, context: Mapping[str, str]) -> tuple[CandidateEntry, ...]:
        """All candidates that could survive scoring for context, unprobed.

        Dimensions beyond MAX_PROBE_DIMENSIONS (in canonical order) are left
        out of the plan; files carrying them are never probed.

        Args:
            base_name: Base name
            context: Validated requested context

        Returns:
            Candidate entries in discovery order
        """
        dimensions = sorted(context, key=variant_sort_key)
        if len(dimensions) > MAX_PROBE_DIMENSIONS:
            logger.debug(
                "Probe plan for %s limited to %d dimensions, skipping %s",
                base_name,
                MAX_PROBE_DIMENSIONS,
                dimensions[MAX_PROBE_DIMENSIONS:],
            )
            dimensions = dimensions[:MAX_PROBE_DIMENSIONS]

        planned: list[CandidateEntry] = []
        for size in range(len(dimensions), -1, -1):
            for subset in itertools.combinations(dimensions, size):
                variants = MappingProxyType({dim: context[dim] for dim in subset})
                for extension in self._codec.extensions:
                    locator = self._codec.serialize(base_name, variants, extension)
                    planned.append(CandidateEntry(base_name, variants, extension, locator))
        return tuple(planned)

    async def candidates_for(
        self, base_name: str, context: Mapping[str, str]
    ) -> tuple[CandidateEntry, ...]:
        """Existing candidates for base_name under context.

        Args:
            base_name: Base name
            context: Validated requested context

        Returns:
            Candidates whose probe reported EXISTS, in discovery order

        Raises:
            SourceUnavailableError: If any probe fails (its state stays UNKNOWN)
        """
        planned = self.plan(base_name, context)
        states = await asyncio.gather(*(self.probe(entry.locator) for entry in planned))
        return tuple(
            entry
            for entry, state in zip(planned, states, strict=True)
            if state is ProbeState.EXISTS
        )

    async def probe(self, locator: str) -> ProbeState:
        """Memoized existence check for one locator."""
        state = self._states.get(locator, ProbeState.UNKNOWN)
        if state is not ProbeState.UNKNOWN:
            self._states.move_to_end(locator)
            return state
        task = self._pending.get(locator)
        if task is None:
            task = asyncio.ensure_future(self._run_probe(locator, self._generation))
            task.add_done_callback(_retrieve_exception)
            self._pending[locator] = task
        return await asyncio.shield(task)

    def state_of(self, locator: str) -> ProbeState:
        """Current memoized state of locator."""
        return self._states.get(locator, ProbeState.UNKNOWN)

    def mark(self, locator: str, state: ProbeState) -> None:
        """Record a known state, e.g. after the loader wrote the file."""
        self._remember(locator, state)

    def forget(self, base_name: str) -> None:
        """Drop memoized states for base_name's locators.

        Probes in flight for base_name keep running for their waiters, but
        later requests start fresh ones.
        """
        self._generation += 1
        for locator in [loc for loc in self._states if self._base_of(loc) == base_name]:
            del self._states[locator]
        for locator in [loc for loc in self._pending if self._base_of(loc) == base_name]:
            del self._pending[locator]

    def clear(self) -> None:
        """Drop all memoized states without aborting in-flight probes."""
        self._generation += 1
        self._pending.clear()
        self._states.clear()

    def close(self) -> None:
        """Cancel in-flight probes and drop all state."""
        pending = list(self._pending.values())
        self.clear()
        for task in pending:
            task.cancel()

    def __len__(self) -> int:
        """Number of memoized locators."""
        return len(self._states)

    async def _run_probe(self, locator: str, generation: int) -> ProbeState:
        try:
            exists = await self._source.exists(locator)
        finally:
            if self._pending.get(locator) is asyncio.current_task():
                del self._pending[locator]
        state = ProbeState.EXISTS if exists else ProbeState.ABSENT
        if generation == self._generation:
            self._remember(locator, state)
        logger.debug("Probed %s: %s", locator, state)
        return state

    def _remember(self, locator: str, state: ProbeState) -> None:
        self._states[locator] = state
        self._states.move_to_end(locator)
        while len(self._states) > self._maxsize:
            self._states.popitem(last=False)

    def _base_of(self, locator: str) -> str | None:
        try:
            return self._codec.parse(locator).base_name
        except VariantParseError:
            return None


def _retrieve_exception(task: asyncio.Task[ProbeState]) -> None:
    if not task.cancelled():
        task.exception()
