"""Sources: where candidate files are discovered and read.

Provides the protocols a loader talks to and two implementations:

    DirectorySource - Local directory; listable, probeable and writable.
                      Blocking pathlib calls run in a worker thread.
    HttpProbeSource - HTTP endpoint reachable only by existence probes
                      (HEAD) and reads (GET) through requests.

Every I/O failure surfaces as SourceUnavailableError so the loader can keep
its previous snapshot and callers can decide whether to retry.

Python 3.13+. External dependency: requests (HttpProbeSource only).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote

import requests

from variantloader.diagnostics import Diagnostic, DiagnosticCode, SourceUnavailableError

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Protocols
    "ListableSource",
    "ProbeSource",
    "WritableSource",
    # Implementations
    "DirectorySource",
    "HttpProbeSource",
]

logger = logging.getLogger(__name__)

_ABSENT_STATUS: frozenset[int] = frozenset({404, 410})


@runtime_checkable
class ListableSource(Protocol):
    """Source whose candidate names can be enumerated in one pass."""

    async def list_names(self) -> list[str]:
        """Return every filename in the source, in a stable order.

        Raises:
            SourceUnavailableError: If the source cannot be listed
        """
        ...

    async def read(self, locator: str) -> str:
        """Return the text content of locator.

        Raises:
            SourceUnavailableError: If the content cannot be read
        """
        ...

    def describe(self, locator: str | None = None) -> str:
        """Human-readable description for logs and diagnostics."""
        ...


@runtime_checkable
class ProbeSource(Protocol):
    """Source that can only answer "does this name exist?"."""

    async def exists(self, locator: str) -> bool:
        """Check existence of locator.

        Raises:
            SourceUnavailableError: If the probe itself fails
        """
        ...

    async def read(self, locator: str) -> str:
        """Return the text content of locator."""
        ...

    def describe(self, locator: str | None = None) -> str:
        """Human-readable description for logs and diagnostics."""
        ...


@runtime_checkable
class WritableSource(Protocol):
    """Source that accepts new or replaced files."""

    async def write(self, locator: str, text: str) -> None:
        """Write text to locator, creating or replacing it.

        Raises:
            SourceUnavailableError: If the write fails
        """
        ...


@dataclass(frozen=True, slots=True)
class DirectorySource:
    """Local directory of variant files.

    Security:
        Locators containing path separators or ".." are rejected, and every
        resolved path is checked against the resolved root so that a
        symlink pointing outside the directory cannot be read or written.

    Example:
        >>> source = DirectorySource("locales")
        >>> names = await source.list_names()  # doctest: +SKIP
        ['strings.json', 'strings:es.json']

    Attributes:
        base_dir: Directory holding the files
        encoding: Text encoding for reads and writes
    """

    base_dir: str | Path
    encoding: str = "utf-8"
    _resolved_root: Path = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Cache the resolved root directory."""
        object.__setattr__(self, "_resolved_root", Path(self.base_dir).resolve())

    @property
    def root(self) -> Path:
        """Resolved root directory."""
        return self._resolved_root

    def describe(self, locator: str | None = None) -> str:
        """Return the directory, or the full path of locator."""
        if locator is None:
            return str(self._resolved_root)
        return str(self._resolved_root / locator)

    async def list_names(self) -> list[str]:
        """Sorted names of regular files directly inside the directory.

        Raises:
            SourceUnavailableError: If the directory cannot be listed
        """
        return await asyncio.to_thread(self._list_names_sync)

    async def exists(self, locator: str) -> bool:
        """Check whether locator is a regular file inside the directory."""
        path = self._path_for(locator)
        return await asyncio.to_thread(path.is_file)

    async def read(self, locator: str) -> str:
        """Read locator as text.

        Raises:
            ValueError: If locator is unsafe
            SourceUnavailableError: If the file cannot be read
        """
        path = self._path_for(locator)
        try:
            return await asyncio.to_thread(path.read_text, encoding=self.encoding)
        except OSError as e:
            raise _source_error(
                DiagnosticCode.SOURCE_READ_FAILED, f"Cannot read file: {e}", str(path)
            ) from e

    async def write(self, locator: str, text: str) -> None:
        """Create or replace locator with text.

        Raises:
            ValueError: If locator is unsafe
            SourceUnavailableError: If the file cannot be written
        """
        path = self._path_for(locator)
        try:
            await asyncio.to_thread(self._write_sync, path, text)
        except OSError as e:
            raise _source_error(
                DiagnosticCode.SOURCE_WRITE_FAILED, f"Cannot write file: {e}", str(path)
            ) from e

    def _list_names_sync(self) -> list[str]:
        try:
            return sorted(entry.name for entry in self._resolved_root.iterdir() if entry.is_file())
        except OSError as e:
            raise _source_error(
                DiagnosticCode.SOURCE_LIST_FAILED,
                f"Cannot list directory: {e}",
                str(self._resolved_root),
            ) from e

    def _write_sync(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=self.encoding)

    def _path_for(self, locator: str) -> Path:
        self._validate_locator(locator)
        path = self._resolved_root / locator
        if not self._is_safe_path(self._resolved_root, path):
            msg = f"Path traversal detected: resolved path escapes root directory: '{locator}'"
            raise ValueError(msg)
        return path

    @staticmethod
    def _validate_locator(locator: str) -> None:
        """Reject locators that could name anything but a direct child file.

        Raises:
            ValueError: If locator is empty or contains ".." or a separator
        """
        if not locator:
            msg = "Locator cannot be empty"
            raise ValueError(msg)
        if ".." in locator:
            msg = f"Path traversal sequences not allowed in locator: '{locator}'"
            raise ValueError(msg)
        if "/" in locator or "\\" in locator:
            msg = f"Path separators not allowed in locator: '{locator}'"
            raise ValueError(msg)

    @staticmethod
    def _is_safe_path(base_dir: Path, full_path: Path) -> bool:
        """Check if full_path, once resolved, is within base_dir."""
        try:
            full_path.resolve().relative_to(base_dir.resolve())
            return True
        except ValueError:
            return False


@dataclass
class HttpProbeSource:
    """HTTP endpoint serving variant files at ``{base_url}/{filename}``.

    Existence is probed with HEAD: 2xx means present, 404/410 absent; any
    other status or a transport error raises SourceUnavailableError so the
    probe memo stays unknown and a later call may try again.

    Attributes:
        base_url: URL prefix the filename is appended to
        timeout_seconds: Per-request timeout
        encoding: Forced response encoding (None keeps requests' detection)
        session: Optional pre-configured requests.Session
    """

    base_url: str
    timeout_seconds: float = 10.0
    encoding: str | None = "utf-8"
    session: requests.Session | None = None

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            msg = "timeout_seconds must be positive"
            raise ValueError(msg)
        self._session = self.session or requests.Session()

    def describe(self, locator: str | None = None) -> str:
        """Return the base URL, or the full URL of locator."""
        if locator is None:
            return self.base_url
        return self._url_for(locator)

    async def exists(self, locator: str) -> bool:
        """HEAD the URL of locator."""
        return await asyncio.to_thread(self._exists_sync, locator)

    async def read(self, locator: str) -> str:
        """GET the URL of locator and return its text."""
        return await asyncio.to_thread(self._read_sync, locator)

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def _url_for(self, locator: str) -> str:
        return self.base_url.rstrip("/") + "/" + quote(locator, safe="")

    def _exists_sync(self, locator: str) -> bool:
        url = self._url_for(locator)
        try:
            response = self._session.head(url, timeout=self.timeout_seconds, allow_redirects=True)
        except requests.RequestException as e:
            raise _source_error(DiagnosticCode.SOURCE_PROBE_FAILED, f"Probe failed: {e}", url) from e
        if 200 <= response.status_code < 300:
            return True
        if response.status_code in _ABSENT_STATUS:
            return False
        raise _source_error(
            DiagnosticCode.SOURCE_PROBE_FAILED,
            f"Probe failed: HTTP {response.status_code}",
            url,
        )

    def _read_sync(self, locator: str) -> str:
        url = self._url_for(locator)
        try:
            response = self._session.get(url, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise _source_error(DiagnosticCode.SOURCE_READ_FAILED, f"Read failed: {e}", url) from e
        if not 200 <= response.status_code < 300:
            raise _source_error(
                DiagnosticCode.SOURCE_READ_FAILED,
                f"Read failed: HTTP {response.status_code}",
                url,
            )
        if self.encoding is not None:
            response.encoding = self.encoding
        return response.text


def _source_error(code: DiagnosticCode, message: str, locator: str) -> SourceUnavailableError:
    logger.debug("%s: %s", locator, message)
    diagnostic = Diagnostic(code=code, message=message, locator=locator)
    return SourceUnavailableError(diagnostic, locator=locator)
