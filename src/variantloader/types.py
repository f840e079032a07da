"""Type aliases for the variant resolution domain.

Provides semantic type aliases used throughout the package and by user code
when annotating loader call sites.

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Callable, Mapping

__all__ = [
    "BaseName",
    "ContentParser",
    "ContentSerializer",
    "DimensionName",
    "Locator",
    "VariantContext",
    "VariantValue",
]

type BaseName = str
"""Name before any variant segment and extension (e.g., 'strings')."""

type DimensionName = str
"""Variant dimension (e.g., 'lang', 'gender', 'form', 'tone')."""

type VariantValue = str
"""Value of one dimension (e.g., 'es', 'f', 'formal')."""

type VariantContext = Mapping[DimensionName, VariantValue]
"""Unordered dimension -> value choices. Absent dimension means "don't care"."""

type Locator = str
"""Opaque identifier a source uses to fetch content (filename or URL)."""

type ContentParser = Callable[[str], object]
"""Turns loaded text into content (default: json.loads)."""

type ContentSerializer = Callable[[object], str]
"""Turns content into text for save() (default: indented JSON)."""
