"""Diagnostic codes and data structures.

Defines error codes and structured diagnostic messages for the variant
loader. Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
]

# Control characters are escaped before a diagnostic reaches a log line,
# since locators and filenames come from directory listings or URLs.
_CONTROL_ESCAPES: dict[int, str] = {code: f"\\x{code:02x}" for code in range(0x20)}
_CONTROL_ESCAPES[0x7F] = "\\x7f"


class DiagnosticCode(Enum):
    """Error codes with unique identifiers.

    Organized by category:
        1000-1999: Filename parse errors (codec failures, recovered during scans)
        2000-2999: Resolution errors (no candidate for a request)
        3000-3999: Source errors (directory or network I/O failures)
    """

    # Filename parse errors (1000-1999)
    FILENAME_EXTENSION_UNKNOWN = 1001
    FILENAME_BASE_INVALID = 1002
    FILENAME_SEGMENT_EMPTY = 1003
    FILENAME_SEGMENT_UNSAFE = 1004
    FILENAME_SEGMENT_UNKNOWN = 1005
    FILENAME_DIMENSION_DUPLICATE = 1006

    # Resolution errors (2000-2999)
    NO_VARIANT_FOUND = 2001

    # Source errors (3000-3999)
    SOURCE_LIST_FAILED = 3001
    SOURCE_READ_FAILED = 3002
    SOURCE_PROBE_FAILED = 3003
    SOURCE_WRITE_FAILED = 3004


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Structured diagnostic message.

    Attributes:
        code: Unique error code
        message: Human-readable error description
        hint: Suggestion for fixing the error
        locator: Filename or URL the diagnostic refers to
        severity: Error severity level
    """

    code: DiagnosticCode
    message: str
    hint: str | None = None
    locator: str | None = None
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        """Return human-readable error description."""
        return self.message

    def format_error(self) -> str:
        """Format diagnostic like a compiler message.

        Example output:
            error[FILENAME_SEGMENT_UNKNOWN]: Unknown variant segment 'fr'
              --> strings:fr.json
              = help: Add 'fr' to the allowed variants or rename the file

        Returns:
            Formatted error message with control characters escaped
        """
        lines = [f"{self.severity}[{self.code.name}]: {_escape(self.message)}"]
        if self.locator is not None:
            lines.append(f"  --> {_escape(self.locator)}")
        if self.hint is not None:
            lines.append(f"  = help: {_escape(self.hint)}")
        return "\n".join(lines)


def _escape(text: str) -> str:
    return text.translate(_CONTROL_ESCAPES)
