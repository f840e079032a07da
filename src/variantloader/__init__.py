"""variantloader - Variant-aware localized file resolution.

Resolves which file best matches a runtime variant context (language,
gender, formality, custom dimensions) from filenames such as
``strings:es:formal.json``, with a pre-scan index, deterministic scoring,
sanitization of untrusted variants, and a resolution cache.

Public API:
    VariantFileLoader - Async loader owning index, cache and source
    LoaderConfig - Immutable loader configuration
    AllowedVariants - Per-dimension allow-lists
    PERMISSIVE - Sentinel for sanitized permissive mode
    FilenameCodec - Filename parser/serializer
    VariantValidator - Requested-context sanitizer
    ResolutionResult - Chosen candidate and its score
    DirectorySource, HttpProbeSource - Built-in sources

Exceptions:
    VariantLoaderError - Base exception class
    VariantParseError - Filename does not follow the convention
    NoVariantFoundError - Nothing, not even the base file, matched
    SourceUnavailableError - Directory or network I/O failed
"""

from .diagnostics import (
    NoVariantFoundError,
    SourceUnavailableError,
    VariantLoaderError,
    VariantParseError,
)
from .enums import Dimension, ProbeState
from .loading import DirectorySource, HttpProbeSource, VariantFileLoader
from .runtime import CandidateEntry, LoaderConfig, ResolutionResult
from .syntax import FilenameCodec
from .validation import PERMISSIVE, AllowedVariants, VariantValidator

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

try:
    __version__ = _get_version("variantloader")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "PERMISSIVE",
    "AllowedVariants",
    "CandidateEntry",
    "Dimension",
    "DirectorySource",
    "FilenameCodec",
    "HttpProbeSource",
    "LoaderConfig",
    "NoVariantFoundError",
    "ProbeState",
    "ResolutionResult",
    "SourceUnavailableError",
    "VariantFileLoader",
    "VariantLoaderError",
    "VariantParseError",
    "VariantValidator",
    "__version__",
]
