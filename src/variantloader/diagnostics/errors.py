"""Variant loader exception hierarchy with structured diagnostics.

Every error raised by the resolution engine derives from VariantLoaderError,
so callers can tell "no file for this variant" and "source unreachable"
apart from content errors raised by the parser that reads the chosen file.

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Mapping

from .codes import Diagnostic, DiagnosticCode


class VariantLoaderError(Exception):
    """Base exception for all variant loader errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize VariantLoaderError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.format_error())
        else:
            self.diagnostic = None
            super().__init__(message)


class VariantParseError(VariantLoaderError):
    """Filename does not follow the baseName[:variant]*.ext convention.

    Recovered locally during scans: the entry is excluded from the index
    and the scan continues.

    Attributes:
        filename: The filename that failed to parse
    """

    def __init__(self, message: str | Diagnostic, *, filename: str = "") -> None:
        """Initialize VariantParseError.

        Args:
            message: Error message string OR Diagnostic object
            filename: The filename that failed to parse
        """
        super().__init__(message)
        self.filename = filename


class NoVariantFoundError(VariantLoaderError):
    """No candidate, including the bare base file, exists for a request.

    Attributes:
        base_name: The requested base name
        context: The validated variant context that was attempted
    """

    def __init__(self, base_name: str, context: Mapping[str, str]) -> None:
        """Initialize NoVariantFoundError.

        Args:
            base_name: The requested base name
            context: The validated variant context that was attempted
        """
        self.base_name = base_name
        self.context: dict[str, str] = dict(context)
        requested = ", ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        diagnostic = Diagnostic(
            code=DiagnosticCode.NO_VARIANT_FOUND,
            message=(
                f"File not found: no variant of '{base_name}' matches "
                f"{{{requested}}}"
            ),
            hint="Add a bare base file or a variant file for this context",
            locator=base_name,
        )
        super().__init__(diagnostic)


class SourceUnavailableError(VariantLoaderError):
    """Underlying scan, probe, read or write I/O failed.

    Potentially retryable by the caller; the loader does not retry and keeps
    its previous snapshot in place.

    Attributes:
        locator: Directory, filename or URL involved
    """

    def __init__(self, message: str | Diagnostic, *, locator: str = "") -> None:
        """Initialize SourceUnavailableError.

        Args:
            message: Error message string OR Diagnostic object
            locator: Directory, filename or URL involved
        """
        super().__init__(message)
        self.locator = locator
