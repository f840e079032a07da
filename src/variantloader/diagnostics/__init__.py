"""Diagnostic system for variant loader errors.

Provides structured error diagnostics with codes, locators and hints.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode
from .errors import (
    NoVariantFoundError,
    SourceUnavailableError,
    VariantLoaderError,
    VariantParseError,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "NoVariantFoundError",
    "SourceUnavailableError",
    "VariantLoaderError",
    "VariantParseError",
]
