"""Loader configuration.

Provides a single frozen dataclass that encapsulates every option a
VariantFileLoader accepts. The loose allowed-variants option (``True`` or a
mapping of lists) is normalized here, once, into the closed
PERMISSIVE / AllowedVariants type.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from variantloader.constants import DEFAULT_CACHE_SIZE, DEFAULT_EXTENSIONS, SAFE_TOKEN_PATTERN
from variantloader.validation.allowed import (
    PERMISSIVE,
    AllowedVariants,
    AllowedVariantsConfig,
    Permissive,
    allowed_from_config,
)

__all__ = ["LoaderConfig"]


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """Immutable configuration for VariantFileLoader.

    All fields have sensible defaults; ``LoaderConfig()`` is a permissive,
    cached, lazily scanning loader for ``*.json`` files in the working
    directory.

    Attributes:
        base_dir: Root directory for the default DirectorySource.
        extensions: Accepted extensions, most preferred first. When the same
            base name and variant set exist with several extensions, the
            earlier extension wins.
        allowed_variants: ``True`` / PERMISSIVE for permissive sanitization,
            or per-dimension allow-lists (mapping or AllowedVariants).
            ``False``/``None`` trusts no requested variant.
        preload: Scan eagerly at construction instead of on first load.
        cache: Enable the resolution cache and the content memo.
        cache_size: Maximum cached resolutions (default: 1000).
        encoding: Text encoding for reads and writes.

    Example:
        >>> config = LoaderConfig(
        ...     base_dir="locales",
        ...     extensions=(".json", ".yaml"),
        ...     allowed_variants={"lang": ["en", "es"], "form": ["formal"]},
        ... )
        >>> config.allowed_variants.allows("lang", "es")
        True
    """

    base_dir: str | Path = "."
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    allowed_variants: (
        AllowedVariantsConfig | bool | Mapping[str, Iterable[str]] | None
    ) = PERMISSIVE
    preload: bool = False
    cache: bool = True
    cache_size: int = DEFAULT_CACHE_SIZE
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate and normalize configuration values at construction time.

        Raises:
            ValueError: If extensions are empty, duplicated or malformed, or
                cache_size is not positive
            TypeError: If allowed_variants has an unsupported type
        """
        extensions = tuple(self.extensions)
        if not extensions:
            msg = "extensions must not be empty"
            raise ValueError(msg)
        if len(set(extensions)) != len(extensions):
            msg = f"extensions must be unique, got {list(extensions)}"
            raise ValueError(msg)
        for extension in extensions:
            parts = extension.split(".")
            if (
                not extension.startswith(".")
                or len(parts) < 2
                or not all(SAFE_TOKEN_PATTERN.fullmatch(part) for part in parts[1:])
            ):
                msg = f"Invalid extension {extension!r}: expected '.ext' form"
                raise ValueError(msg)
        if self.cache_size <= 0:
            msg = "cache_size must be positive"
            raise ValueError(msg)

        object.__setattr__(self, "extensions", extensions)
        object.__setattr__(self, "allowed_variants", allowed_from_config(self.allowed_variants))

    @property
    def allowed(self) -> AllowedVariantsConfig:
        """Normalized allowed-variants configuration."""
        match self.allowed_variants:
            case Permissive() | AllowedVariants():
                return self.allowed_variants
            case _:  # pragma: no cover - normalized in __post_init__
                return allowed_from_config(self.allowed_variants)
