"""VariantFileLoader: variant-aware file loading over one source.

Owns the whole resolution pipeline for one configuration:

    request (base_name, variants)
      -> VariantValidator      drop untrusted pairs
      -> ResolutionCache       canonical key lookup
      -> CandidateIndex        snapshot of the listed source
         or ProbeIndex         memoized existence probes
      -> resolve()             best candidate by score
      -> source.read + parser  content for the caller

Concurrency model:
    Single-threaded cooperative (asyncio). The first caller that needs a
    snapshot starts the scan; concurrent callers await the same task
    instead of scanning again. The task is shielded, so a caller that
    abandons its load does not abort the scan; it still installs the
    snapshot for later callers. Once installed, resolution is synchronous
    in-memory work and never observes a half-built snapshot.

Lifecycle:
    construct -> optional eager scan -> serve loads -> refresh()/invalidate()
    -> close(). Nothing is module-level, so loaders with different
    configurations coexist and tests can run isolated instances.

Python 3.13+.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import TYPE_CHECKING, Self

from variantloader.diagnostics import NoVariantFoundError, SourceUnavailableError
from variantloader.enums import ProbeState
from variantloader.loading.sources import (
    DirectorySource,
    ListableSource,
    ProbeSource,
    WritableSource,
)
from variantloader.runtime.cache import ResolutionCache, make_cache_key
from variantloader.runtime.config import LoaderConfig
from variantloader.runtime.index import CandidateEntry, CandidateIndex
from variantloader.runtime.probe import ProbeIndex
from variantloader.runtime.scoring import ResolutionResult, resolve
from variantloader.syntax.codec import FilenameCodec, is_valid_base_name
from variantloader.validation.validator import VariantValidator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from variantloader.types import (
        BaseName,
        ContentParser,
        ContentSerializer,
        Locator,
        VariantContext,
    )

__all__ = ["VariantFileLoader"]

logger = logging.getLogger(__name__)


def _default_serializer(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


class VariantFileLoader:
    """Resolve and load the best variant file for a requested context.

    Example:
        >>> config = LoaderConfig(
        ...     base_dir="locales",
        ...     allowed_variants={"lang": ["en", "es"], "form": ["casual", "formal"]},
        ... )
        >>> async with VariantFileLoader(config) as loader:  # doctest: +SKIP
        ...     strings = await loader.load("strings", {"lang": "es", "form": "formal"})

    Attributes:
        config: Immutable loader configuration
    """

    __slots__ = (
        "_cache",
        "_closed",
        "_codec",
        "_config",
        "_contents",
        "_index",
        "_parser",
        "_pending_scan",
        "_probe_index",
        "_scan_count",
        "_serializer",
        "_source",
        "_validator",
    )

    def __init__(
        self,
        config: LoaderConfig | None = None,
        source: ListableSource | ProbeSource | None = None,
        *,
        parser: ContentParser = json.loads,
        serializer: ContentSerializer = _default_serializer,
    ) -> None:
        """Initialize loader.

        With ``config.preload`` and a running event loop, the scan starts
        immediately in the background; without a running loop it starts on
        first use. Use ``await VariantFileLoader.open(...)`` to wait for it.

        Args:
            config: Loader configuration (default: LoaderConfig())
            source: Listable or probe-only source (default: DirectorySource
                over ``config.base_dir``)
            parser: Turns loaded text into content (default: json.loads)
            serializer: Turns content into text for save()

        Raises:
            TypeError: If source implements neither source protocol
        """
        self._config = config if config is not None else LoaderConfig()
        self._source = (
            source
            if source is not None
            else DirectorySource(self._config.base_dir, encoding=self._config.encoding)
        )
        self._validator = VariantValidator(self._config.allowed)
        self._codec = FilenameCodec(self._config.allowed, self._config.extensions)
        self._parser = parser
        self._serializer = serializer
        self._cache: ResolutionCache | None = (
            ResolutionCache(self._validator, self._config.cache_size)
            if self._config.cache
            else None
        )
        self._contents: dict[Locator, tuple[BaseName, object]] = {}
        self._index = CandidateIndex()
        self._pending_scan: asyncio.Task[frozenset[str]] | None = None
        self._scan_count = 0
        self._closed = False

        match self._source:
            case ListableSource():
                self._probe_index: ProbeIndex | None = None
            case ProbeSource():
                self._probe_index = ProbeIndex(self._source, self._codec)
            case _:
                msg = f"source must implement ListableSource or ProbeSource, got {type(source).__name__}"
                raise TypeError(msg)

        if self._config.preload and self.is_listable:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop; preload deferred to first use")
            else:
                self._start_scan()

    @classmethod
    async def open(
        cls,
        config: LoaderConfig | None = None,
        source: ListableSource | ProbeSource | None = None,
        *,
        parser: ContentParser = json.loads,
        serializer: ContentSerializer = _default_serializer,
    ) -> Self:
        """Construct a loader and, if ``config.preload``, await its first scan.

        Raises:
            SourceUnavailableError: If the eager scan fails
        """
        loader = cls(config, source, parser=parser, serializer=serializer)
        if loader.config.preload:
            await loader.scan()
        return loader

    async def __aenter__(self) -> Self:
        """Enter async context; awaits preload if configured."""
        if self._config.preload:
            await self.scan()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Tear down the loader. Does not suppress exceptions."""
        self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> LoaderConfig:
        """Immutable loader configuration."""
        return self._config

    @property
    def source(self) -> ListableSource | ProbeSource:
        """Source files are discovered in and read from."""
        return self._source

    @property
    def codec(self) -> FilenameCodec:
        """Filename codec for this configuration."""
        return self._codec

    @property
    def validator(self) -> VariantValidator:
        """Validator applied to every requested context."""
        return self._validator

    @property
    def index(self) -> CandidateIndex:
        """Candidate snapshot (empty for probe-only sources)."""
        return self._index

    @property
    def is_listable(self) -> bool:
        """True when the source is scanned rather than probed."""
        return self._probe_index is None

    @property
    def scan_count(self) -> int:
        """Number of completed scans."""
        return self._scan_count

    @property
    def is_closed(self) -> bool:
        """True after close()."""
        return self._closed

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def scan(self) -> None:
        """Install the first snapshot, sharing any scan already in flight.

        No-op when a snapshot is installed or the source is probe-only.

        Raises:
            SourceUnavailableError: If listing fails
        """
        self._check_open()
        if not self.is_listable or self._index.is_scanned:
            return
        await self._await_scan()

    async def refresh(self) -> frozenset[str]:
        """Re-scan the source explicitly.

        A scan already in flight may have listed the source before the
        caller's change, so refresh() waits for it and then scans again.
        Cached resolutions of base names whose candidates changed are
        invalidated; unrelated base names stay cached. The content memo is
        dropped entirely, since files may have been edited in place. On
        failure the previous snapshot remains in place.

        Returns:
            Base names whose candidates changed (empty for probe-only sources,
            whose memoized probes are dropped entirely)

        Raises:
            SourceUnavailableError: If listing fails
        """
        self._check_open()
        if not self.is_listable:
            self.invalidate()
            return frozenset()

        pending = self._pending_scan
        if pending is not None:
            with contextlib.suppress(SourceUnavailableError):
                await asyncio.shield(pending)
            self._check_open()
        changed = await self._await_scan()
        self._contents.clear()
        return changed

    def _start_scan(self) -> asyncio.Task[frozenset[str]]:
        if self._pending_scan is None:
            self._pending_scan = asyncio.ensure_future(self._run_scan())
            self._pending_scan.add_done_callback(_retrieve_exception)
        return self._pending_scan

    async def _await_scan(self) -> frozenset[str]:
        return await asyncio.shield(self._start_scan())

    async def _run_scan(self) -> frozenset[str]:
        had_snapshot = self._index.is_scanned
        try:
            changed = await self._index.scan(self._source, self._codec)  # type: ignore[arg-type]
        except SourceUnavailableError as e:
            if had_snapshot:
                logger.warning("Re-scan failed, keeping previous snapshot: %s", e)
            raise
        finally:
            self._pending_scan = None
        self._scan_count += 1
        for base_name in changed:
            self._invalidate_base(base_name)
        return changed

    # ------------------------------------------------------------------
    # Resolution and loading
    # ------------------------------------------------------------------

    async def resolve(
        self, base_name: str, variants: VariantContext | None = None
    ) -> ResolutionResult:
        """Pick the best candidate for base_name under variants.

        Args:
            base_name: Base name (no variant segments, no extension)
            variants: Requested context; untrusted pairs are dropped

        Returns:
            ResolutionResult (entry None when nothing matched)

        Raises:
            ValueError: If base_name is invalid
            SourceUnavailableError: If the scan or a probe fails
        """
        self._check_open()
        self._validate_base_name(base_name)

        if self._cache is not None:
            cached = self._cache.get(base_name, variants)
            if cached is not None:
                return cached

        context = self._validator.validate(variants)
        if self._probe_index is None:
            await self.scan()
            candidates = self._index.candidates_for(base_name)
        else:
            candidates = await self._probe_index.candidates_for(base_name, context)

        result = resolve(base_name, context, candidates, self._codec.extension_rank)
        logger.debug(
            "Resolved %s %s -> %s (score %s)",
            base_name,
            context,
            result.locator,
            result.score,
        )
        if self._cache is not None and not self._closed:
            self._cache.put(base_name, variants, result)
        return result

    async def load(self, base_name: str, variants: VariantContext | None = None) -> object:
        """Load and parse the best variant file for base_name.

        Args:
            base_name: Base name (no variant segments, no extension)
            variants: Requested context; untrusted pairs are dropped

        Returns:
            Parsed content of the chosen file (memoized per file when
            caching is enabled)

        Raises:
            ValueError: If base_name is invalid
            NoVariantFoundError: If no candidate, not even the bare base
                file, exists
            SourceUnavailableError: If scanning, probing or reading fails
            Exception: Whatever the parser raises for invalid content
        """
        result = await self.resolve(base_name, variants)
        if result.entry is None:
            raise NoVariantFoundError(base_name, result.context)

        locator = result.entry.locator
        if self._cache is not None and locator in self._contents:
            return self._contents[locator][1]

        text = await self._source.read(locator)
        content = self._parser(text)
        if self._cache is not None and not self._closed:
            self._contents[locator] = (base_name, content)
        return content

    async def exists(self, base_name: str, variants: VariantContext | None = None) -> bool:
        """Check whether any candidate resolves for base_name under variants."""
        return (await self.resolve(base_name, variants)).found

    async def save(
        self,
        base_name: str,
        data: object,
        variants: VariantContext | None = None,
    ) -> Locator:
        """Write data as the variant file for exactly variants.

        Unlike load(), untrusted variants are an error here: dropping one
        would silently write a different file.

        Args:
            base_name: Base name
            data: Content passed to the serializer
            variants: Exact variant set of the file to write

        Returns:
            Locator of the written file

        Raises:
            ValueError: If base_name or any variant is not allowed
            TypeError: If the source is not writable
            SourceUnavailableError: If the write fails
        """
        self._check_open()
        self._validate_base_name(base_name)
        if not isinstance(self._source, WritableSource):
            msg = f"Source {self._source.describe()} is not writable"
            raise TypeError(msg)

        context = self._validator.validate_strict(variants)
        locator = self._codec.serialize(base_name, context)
        await self._source.write(locator, self._serializer(data))

        if self._probe_index is None:
            await self.scan()
            parsed = self._codec.parse(locator)
            self._index.add(
                CandidateEntry(parsed.base_name, parsed.variants, parsed.extension, locator)
            )
        else:
            self._probe_index.mark(locator, ProbeState.EXISTS)
        self._invalidate_base(base_name)
        logger.debug("Saved %s", self._source.describe(locator))
        return locator

    async def load_many(
        self, requests: Sequence[tuple[BaseName, VariantContext | None]]
    ) -> list[object]:
        """Load several (base_name, variants) requests concurrently.

        Args:
            requests: Pairs accepted by load()

        Returns:
            Contents in request order

        Raises:
            The first exception raised by any load(); see load()
        """
        self._check_open()
        return await asyncio.gather(
            *(self.load(base_name, variants) for base_name, variants in requests)
        )

    async def save_many(
        self,
        targets: Sequence[tuple[BaseName, VariantContext | None]],
        data: Sequence[object],
    ) -> list[Locator]:
        """Write data[i] as the variant file for targets[i], concurrently.

        Every target is validated before anything is written, so one
        disallowed variant leaves the source untouched.

        Args:
            targets: (base_name, variants) pairs accepted by save()
            data: Contents, one per target

        Returns:
            Locators of the written files, in target order

        Raises:
            ValueError: If lengths differ, or any base name or variant is
                not allowed
            TypeError: If the source is not writable
            SourceUnavailableError: If a write fails
        """
        self._check_open()
        if len(targets) != len(data):
            msg = f"targets and data must have the same length ({len(targets)} != {len(data)})"
            raise ValueError(msg)
        for base_name, variants in targets:
            self._validate_base_name(base_name)
            self._validator.validate_strict(variants)
        return await asyncio.gather(
            *(
                self.save(base_name, content, variants)
                for (base_name, variants), content in zip(targets, data, strict=True)
            )
        )

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def cache_key(self, base_name: str, variants: VariantContext | None = None) -> str:
        """Cache key string for a request, after validation."""
        return make_cache_key(base_name, self._validator.validate(variants))

    def cache_keys(self) -> tuple[str, ...]:
        """Keys of cached resolutions (empty when caching is disabled)."""
        return self._cache.keys() if self._cache is not None else ()

    def invalidate(self, base_name: str | None = None) -> None:
        """Drop cached resolutions and content.

        Args:
            base_name: Only this base name; None drops everything
        """
        if base_name is None:
            self.clear_cache()
            if self._probe_index is not None:
                self._probe_index.clear()
            return
        self._invalidate_base(base_name)
        if self._probe_index is not None:
            self._probe_index.forget(base_name)

    def clear_cache(self) -> None:
        """Drop every cached resolution and content memo."""
        if self._cache is not None:
            self._cache.clear()
        self._contents.clear()
        logger.debug("Cache manually cleared")

    def get_cache_stats(self) -> dict[str, int | float] | None:
        """Resolution cache statistics, or None when caching is disabled."""
        if self._cache is None:
            return None
        stats = self._cache.get_stats()
        stats["contents"] = len(self._contents)
        return stats

    def close(self) -> None:
        """Tear down: cancel pending work and discard index, cache and memos.

        Idempotent. Any later operation raises RuntimeError.
        """
        if self._closed:
            return
        self._closed = True
        if self._pending_scan is not None:
            self._pending_scan.cancel()
            self._pending_scan = None
        if self._probe_index is not None:
            self._probe_index.close()
        self._index.clear()
        self.clear_cache()
        logger.debug("Loader closed for %s", self._source.describe())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invalidate_base(self, base_name: str) -> None:
        if self._cache is not None:
            self._cache.invalidate_base(base_name)
        stale = [locator for locator, (base, _) in self._contents.items() if base == base_name]
        for locator in stale:
            del self._contents[locator]

    def _check_open(self) -> None:
        if self._closed:
            msg = "VariantFileLoader is closed"
            raise RuntimeError(msg)

    @staticmethod
    def _validate_base_name(base_name: str) -> None:
        """Reject base names that could escape the source or smuggle variants.

        Raises:
            ValueError: If base_name is empty, contains a path separator,
                '..', or the variant delimiter
        """
        if not isinstance(base_name, str) or not base_name:
            msg = "Base name cannot be empty"
            raise ValueError(msg)
        if ".." in base_name:
            msg = f"Path traversal sequences not allowed in base name: '{base_name}'"
            raise ValueError(msg)
        if "/" in base_name or "\\" in base_name:
            msg = f"Path separators not allowed in base name: '{base_name}'"
            raise ValueError(msg)
        if not is_valid_base_name(base_name):
            msg = f"Invalid base name: '{base_name}'"
            raise ValueError(msg)


def _retrieve_exception(task: asyncio.Task[frozenset[str]]) -> None:
    if not task.cancelled():
        task.exception()

