"""Candidate index: a snapshot of discovered variant files grouped by base name.

Scanning a source is O(n) in the number of files and happens once (or on
explicit refresh); every later lookup is an O(1) dict access returning the
k candidates that share a base name.

Snapshots are replaced wholesale. install() builds the complete new grouping
before swapping it in, so a resolution running between two scans always sees
one consistent snapshot. A failed scan leaves the previous snapshot in place.

Python 3.13+.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from variantloader.diagnostics import VariantParseError

if TYPE_CHECKING:
    from variantloader.loading.sources import ListableSource
    from variantloader.syntax.codec import FilenameCodec

__all__ = ["CandidateEntry", "CandidateIndex"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CandidateEntry:
    """One discovered file.

    Attributes:
        base_name: Name before any variant segment and extension
        variants: Read-only variant set parsed from the filename
        extension: Recognized extension (used for tie-breaking)
        locator: Opaque identifier the source uses to fetch content
    """

    base_name: str
    variants: Mapping[str, str]
    extension: str
    locator: str

    @property
    def is_base(self) -> bool:
        """True for the bare base file (no variant segments)."""
        return not self.variants


type _Groups = Mapping[str, tuple[CandidateEntry, ...]]


class CandidateIndex:
    """Snapshot of (base name, variant set) pairs for one listable source.

    Not shared between loaders. All mutation replaces the grouping mapping
    as a whole; readers never see a half-built group.
    """

    __slots__ = ("_groups", "_scanned")

    def __init__(self) -> None:
        """Initialize an empty, unscanned index."""
        self._groups: _Groups = MappingProxyType({})
        self._scanned = False

    async def scan(self, source: ListableSource, codec: FilenameCodec) -> frozenset[str]:
        """List the source once and install a new snapshot.

        Filenames that fail to parse are skipped and logged at DEBUG.

        Args:
            source: Listable source to enumerate
            codec: Codec that parses each listed filename

        Returns:
            Base names whose candidate sequences changed

        Raises:
            SourceUnavailableError: If listing fails (snapshot unchanged)
        """
        names = await source.list_names()

        entries: list[CandidateEntry] = []
        skipped = 0
        for name in names:
            try:
                parsed = codec.parse(name)
            except VariantParseError as e:
                skipped += 1
                logger.debug("Skipped %r: %s", name, e.diagnostic or e)
                continue
            entries.append(
                CandidateEntry(parsed.base_name, parsed.variants, parsed.extension, name)
            )

        changed = self.install(entries)
        logger.info(
            "Scanned %s: %d candidates for %d base names, %d skipped",
            source.describe(),
            len(entries),
            len(self._groups),
            skipped,
        )
        return changed

    def install(self, entries: Iterable[CandidateEntry]) -> frozenset[str]:
        """Replace the snapshot with entries, preserving discovery order.

        Args:
            entries: Candidates in discovery order

        Returns:
            Base names whose candidate sequences differ from the old snapshot
        """
        grouped: dict[str, list[CandidateEntry]] = {}
        for entry in entries:
            grouped.setdefault(entry.base_name, []).append(entry)
        new_groups = {base: tuple(group) for base, group in grouped.items()}

        old_groups = self._groups
        self._groups = MappingProxyType(new_groups)
        self._scanned = True

        return frozenset(
            base
            for base in old_groups.keys() | new_groups.keys()
            if old_groups.get(base) != new_groups.get(base)
        )

    def add(self, entry: CandidateEntry) -> None:
        """Incrementally add or replace one entry (copy-on-write).

        An existing entry with the same locator is replaced in place;
        otherwise the entry is appended as the last discovered candidate.
        """
        group = list(self._groups.get(entry.base_name, ()))
        for position, existing in enumerate(group):
            if existing.locator == entry.locator:
                group[position] = entry
                break
        else:
            group.append(entry)

        updated = dict(self._groups)
        updated[entry.base_name] = tuple(group)
        self._groups = MappingProxyType(updated)

    def candidates_for(self, base_name: str) -> tuple[CandidateEntry, ...]:
        """All candidates sharing base_name, in discovery order."""
        return self._groups.get(base_name, ())

    def base_names(self) -> tuple[str, ...]:
        """Base names present in the current snapshot."""
        return tuple(self._groups)

    @property
    def is_scanned(self) -> bool:
        """True once a snapshot has been installed."""
        return self._scanned

    def clear(self) -> None:
        """Drop the snapshot and return to the unscanned state."""
        self._groups = MappingProxyType({})
        self._scanned = False

    def __len__(self) -> int:
        """Total number of candidates across all base names."""
        return sum(len(group) for group in self._groups.values())
