"""Variant file loading package.

Provides the source protocols, the directory and HTTP sources, and the
loader that orchestrates validation, caching, indexing and resolution.

Submodules:
    sources - ListableSource / ProbeSource / WritableSource protocols,
              DirectorySource, HttpProbeSource
    loader  - VariantFileLoader

Python 3.13+.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability

from variantloader.loading.loader import VariantFileLoader
from variantloader.loading.sources import (
    DirectorySource,
    HttpProbeSource,
    ListableSource,
    ProbeSource,
    WritableSource,
)

__all__ = [
    # Loader
    "VariantFileLoader",
    # Source protocols
    "ListableSource",
    "ProbeSource",
    "WritableSource",
    # Source implementations
    "DirectorySource",
    "HttpProbeSource",
]
