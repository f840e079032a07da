"""Variant filename codec.

Parses ``baseName[:variant]*.ext`` filenames into a canonical, order
independent variant set, and serializes a variant set back into a filename.

Segment forms:
    es            Bare value; its dimension is found by value-set membership
    tone=surfer   Explicit dimension tag

Bare values are classified in fixed priority order (lang, gender, form, then
custom dimensions sorted by name). With allow-lists, membership is the
allow-list of each dimension; in permissive mode it is the built-in
vocabulary (CLDR language codes via Babel, m/f/x, formality levels), and
any other safe token becomes a self-named custom dimension.

Python 3.13+.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from variantloader.constants import (
    BASE_NAME_PATTERN,
    DEFAULT_EXTENSIONS,
    EXPLICIT_SEPARATOR,
    FORM_VALUES,
    GENDER_VALUES,
    SAFE_TOKEN_PATTERN,
    VARIANT_DELIMITER,
)
from variantloader.diagnostics import Diagnostic, DiagnosticCode, VariantParseError
from variantloader.enums import BUILTIN_DIMENSIONS, Dimension
from variantloader.locale_utils import is_known_language
from variantloader.validation.allowed import AllowedVariants, AllowedVariantsConfig

__all__ = [
    "FilenameCodec",
    "ParsedFilename",
    "is_valid_base_name",
    "variant_sort_key",
]

_BUILTIN_ORDER: dict[str, int] = {str(dim): rank for rank, dim in enumerate(BUILTIN_DIMENSIONS)}


@dataclass(frozen=True, slots=True)
class ParsedFilename:
    """Result of parsing one filename.

    Attributes:
        base_name: Name before any variant segment
        variants: Read-only dimension -> value mapping
        extension: Recognized extension that was stripped (with leading dot)
    """

    base_name: str
    variants: Mapping[str, str]
    extension: str


def is_valid_base_name(name: object) -> bool:
    """Check that name is usable as a base name (no separators, no '..')."""
    return isinstance(name, str) and bool(BASE_NAME_PATTERN.fullmatch(name))


def variant_sort_key(dimension: str) -> tuple[int, str]:
    """Canonical dimension order: built-ins by priority, then custom by name."""
    return (_BUILTIN_ORDER.get(dimension, len(_BUILTIN_ORDER)), dimension)


class FilenameCodec:
    """Encodes and decodes variant filenames for one loader configuration.

    Example:
        >>> codec = FilenameCodec(AllowedVariants({"lang": ["es"], "form": ["formal"]}))
        >>> parsed = codec.parse("strings:formal:es.json")
        >>> parsed.base_name, dict(parsed.variants), parsed.extension
        ('strings', {'form': 'formal', 'lang': 'es'}, '.json')
        >>> codec.serialize("strings", {"form": "formal", "lang": "es"})
        'strings:es:formal.json'
    """

    __slots__ = ("_allowed", "_extensions")

    def __init__(
        self,
        allowed: AllowedVariantsConfig,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        """Initialize codec.

        Args:
            allowed: PERMISSIVE or an AllowedVariants instance
            extensions: Recognized extensions in priority order

        Raises:
            ValueError: If no extensions are given
        """
        self._allowed = allowed
        self._extensions = tuple(extensions)
        if not self._extensions:
            msg = "At least one extension is required"
            raise ValueError(msg)

    @property
    def extensions(self) -> tuple[str, ...]:
        """Recognized extensions, most preferred first."""
        return self._extensions

    def extension_rank(self, extension: str) -> int:
        """Priority of extension (0 = most preferred; unknown sorts last)."""
        try:
            return self._extensions.index(extension)
        except ValueError:
            return len(self._extensions)

    def classify(self, value: str) -> str | None:
        """Find the dimension a bare segment value belongs to.

        Args:
            value: Bare segment value

        Returns:
            Dimension name, or None if the value is not accepted
        """
        if not SAFE_TOKEN_PATTERN.fullmatch(value):
            return None
        match self._allowed:
            case AllowedVariants() as allowed:
                return allowed.dimension_for(value)
            case _:
                if is_known_language(value):
                    return Dimension.LANG.value
                if value in GENDER_VALUES:
                    return Dimension.GENDER.value
                if value in FORM_VALUES:
                    return Dimension.FORM.value
                return value

    def parse(self, filename: str) -> ParsedFilename:
        """Parse a filename into base name, variant set and extension.

        Args:
            filename: Bare filename (no directory part)

        Returns:
            ParsedFilename with an order-independent variant set

        Raises:
            VariantParseError: If the extension is not recognized, the base
                name is invalid, or any segment is empty, unsafe, unknown or
                repeats a dimension
        """
        extension = next(
            (ext for ext in self._extensions if filename.endswith(ext) and len(filename) > len(ext)),
            None,
        )
        if extension is None:
            raise self._error(
                DiagnosticCode.FILENAME_EXTENSION_UNKNOWN,
                f"Unrecognized extension in '{filename}'",
                filename,
                hint=f"Expected one of: {', '.join(self._extensions)}",
            )

        stem = filename[: -len(extension)]
        base_name, *segments = stem.split(VARIANT_DELIMITER)
        if not is_valid_base_name(base_name):
            raise self._error(
                DiagnosticCode.FILENAME_BASE_INVALID,
                f"Invalid base name '{base_name}'",
                filename,
            )

        variants: dict[str, str] = {}
        for segment in segments:
            dimension, value = self._parse_segment(segment, filename)
            if dimension in variants:
                raise self._error(
                    DiagnosticCode.FILENAME_DIMENSION_DUPLICATE,
                    f"Dimension '{dimension}' appears twice ('{variants[dimension]}', '{value}')",
                    filename,
                )
            variants[dimension] = value

        canonical = {dim: variants[dim] for dim in sorted(variants, key=variant_sort_key)}
        return ParsedFilename(base_name, MappingProxyType(canonical), extension)

    def serialize(
        self,
        base_name: str,
        variants: Mapping[str, str] | None = None,
        extension: str | None = None,
    ) -> str:
        """Build the canonical filename for a base name and variant set.

        Built-in dimensions come first in priority order, then custom
        dimensions sorted by name. A value is written bare when parse()
        would classify it back into the same dimension, otherwise as
        ``dim=value``.

        Args:
            base_name: Base name
            variants: Variant set (None or empty for the bare base file)
            extension: Extension to append (default: most preferred)

        Returns:
            Filename such as ``strings:es:formal.json``

        Raises:
            ValueError: If base name, a dimension or a value is unsafe
        """
        if not is_valid_base_name(base_name):
            msg = f"Invalid base name: {base_name!r}"
            raise ValueError(msg)
        parts = [base_name]
        for dimension in sorted(variants or {}, key=variant_sort_key):
            value = variants[dimension]  # type: ignore[index]
            if not SAFE_TOKEN_PATTERN.fullmatch(dimension) or not SAFE_TOKEN_PATTERN.fullmatch(value):
                msg = f"Unsafe variant {dimension!r}={value!r}"
                raise ValueError(msg)
            if self.classify(value) == dimension:
                parts.append(value)
            else:
                parts.append(f"{dimension}{EXPLICIT_SEPARATOR}{value}")
        return VARIANT_DELIMITER.join(parts) + (extension or self._extensions[0])

    def _parse_segment(self, segment: str, filename: str) -> tuple[str, str]:
        if not segment:
            raise self._error(
                DiagnosticCode.FILENAME_SEGMENT_EMPTY,
                f"Empty variant segment in '{filename}'",
                filename,
            )

        if EXPLICIT_SEPARATOR in segment:
            dimension, _, value = segment.partition(EXPLICIT_SEPARATOR)
            if not SAFE_TOKEN_PATTERN.fullmatch(dimension) or not SAFE_TOKEN_PATTERN.fullmatch(value):
                raise self._error(
                    DiagnosticCode.FILENAME_SEGMENT_UNSAFE,
                    f"Unsafe variant segment '{segment}'",
                    filename,
                )
            if isinstance(self._allowed, AllowedVariants) and not self._allowed.allows(
                dimension, value
            ):
                raise self._error(
                    DiagnosticCode.FILENAME_SEGMENT_UNKNOWN,
                    f"Variant '{dimension}={value}' is not in allowed variants",
                    filename,
                )
            return dimension, value

        if not SAFE_TOKEN_PATTERN.fullmatch(segment):
            raise self._error(
                DiagnosticCode.FILENAME_SEGMENT_UNSAFE,
                f"Unsafe variant segment '{segment}'",
                filename,
            )
        dimension = self.classify(segment)
        if dimension is None:
            raise self._error(
                DiagnosticCode.FILENAME_SEGMENT_UNKNOWN,
                f"Unknown variant segment '{segment}'",
                filename,
                hint=f"Add '{segment}' to the allowed variants or rename the file",
            )
        return dimension, segment

    @staticmethod
    def _error(
        code: DiagnosticCode,
        message: str,
        filename: str,
        *,
        hint: str | None = None,
    ) -> VariantParseError:
        diagnostic = Diagnostic(code=code, message=message, hint=hint, locator=filename)
        return VariantParseError(diagnostic, filename=filename)
