"""Allowed-variant configuration: permissive sentinel or per-dimension allow-lists.

The loose configuration shape (``True`` or a mapping of lists) is normalized
once, at loader construction, into a closed two-variant type:

    PERMISSIVE       - any safe token is trusted (sanitized by pattern)
    AllowedVariants  - only the listed values of the listed dimensions

Both are immutable; changing allowed variants means building a new loader.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from variantloader.constants import SAFE_TOKEN_PATTERN
from variantloader.enums import BUILTIN_DIMENSIONS

__all__ = [
    "PERMISSIVE",
    "AllowedVariants",
    "AllowedVariantsConfig",
    "Permissive",
    "allowed_from_config",
]


class Permissive:
    """Sentinel type for permissive mode. Use the PERMISSIVE singleton."""

    __slots__ = ()
    _instance: Permissive | None = None

    def __new__(cls) -> Permissive:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PERMISSIVE"

    def __reduce__(self) -> str:
        return "PERMISSIVE"


PERMISSIVE: Final[Permissive] = Permissive()


@dataclass(frozen=True, slots=True)
class AllowedVariants:
    """Per-dimension allow-lists.

    Values keep their declaration order (used when materializing candidates
    for sources that cannot be listed) but must be unique within a
    dimension and disjoint across dimensions, so a bare filename segment
    always names exactly one dimension.

    Example:
        >>> allowed = AllowedVariants({"lang": ["en", "es"], "form": ["formal"]})
        >>> allowed.allows("lang", "es")
        True
        >>> allowed.dimension_for("formal")
        'form'

    Attributes:
        dimensions: Dimension name -> ordered tuple of accepted values
    """

    dimensions: Mapping[str, tuple[str, ...]]
    _lookup: Mapping[str, frozenset[str]] = field(init=False, repr=False, compare=False)
    _owners: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate and freeze the allow-lists.

        Raises:
            TypeError: If a value list is a bare string instead of a sequence
            ValueError: If a dimension or value is not a safe token, a value
                repeats inside a dimension, or a value appears in two dimensions
        """
        frozen: dict[str, tuple[str, ...]] = {}
        owners: dict[str, str] = {}
        for dim, values in self.dimensions.items():
            _check_token(dim, "dimension name")
            if isinstance(values, str):
                msg = f"Allowed values for '{dim}' must be a sequence, not a string"
                raise TypeError(msg)
            ordered = tuple(values)
            for value in ordered:
                _check_token(value, f"value of '{dim}'")
            if len(set(ordered)) != len(ordered):
                msg = f"Allowed values for '{dim}' contain duplicates: {list(ordered)}"
                raise ValueError(msg)
            for value in ordered:
                if value in owners:
                    msg = (
                        f"Variant value '{value}' is allowed for both "
                        f"'{owners[value]}' and '{dim}'; value sets must be disjoint"
                    )
                    raise ValueError(msg)
                owners[value] = dim
            frozen[dim] = ordered

        object.__setattr__(self, "dimensions", MappingProxyType(frozen))
        object.__setattr__(
            self,
            "_lookup",
            MappingProxyType({dim: frozenset(vals) for dim, vals in frozen.items()}),
        )
        object.__setattr__(self, "_owners", MappingProxyType(owners))

    def __contains__(self, dimension: object) -> bool:
        return dimension in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self.dimension_order())

    def __len__(self) -> int:
        return len(self._lookup)

    def allows(self, dimension: str, value: str) -> bool:
        """Check whether value is accepted for dimension."""
        accepted = self._lookup.get(dimension)
        return accepted is not None and value in accepted

    def values(self, dimension: str) -> tuple[str, ...]:
        """Ordered accepted values for dimension (empty if not allowed)."""
        return self.dimensions.get(dimension, ())

    def dimension_for(self, value: str) -> str | None:
        """Return the single dimension whose allow-list contains value."""
        return self._owners.get(value)

    def dimension_order(self) -> tuple[str, ...]:
        """Dimensions in classification priority: built-ins first, then custom sorted."""
        builtin = [str(dim) for dim in BUILTIN_DIMENSIONS if dim in self._lookup]
        custom = sorted(dim for dim in self._lookup if dim not in builtin)
        return (*builtin, *custom)


type AllowedVariantsConfig = Permissive | AllowedVariants


def allowed_from_config(
    value: bool | Permissive | AllowedVariants | Mapping[str, Iterable[str]] | None,
) -> AllowedVariantsConfig:
    """Normalize a loose allowed-variants option into the closed type.

    Args:
        value: ``True`` or PERMISSIVE for permissive mode; a mapping or
            AllowedVariants for allow-lists; ``False``/``None`` for an empty
            allow-list (no requested variant is trusted).

    Returns:
        PERMISSIVE or an AllowedVariants instance

    Raises:
        TypeError: If value has an unsupported type
    """
    match value:
        case True | Permissive():
            return PERMISSIVE
        case False | None:
            return AllowedVariants({})
        case AllowedVariants():
            return value
        case Mapping():
            return AllowedVariants(value)  # type: ignore[arg-type]
        case _:
            msg = f"allowed_variants must be True, a mapping or AllowedVariants, got {type(value).__name__}"
            raise TypeError(msg)


def _check_token(token: object, what: str) -> None:
    if not isinstance(token, str) or not SAFE_TOKEN_PATTERN.fullmatch(token):
        msg = f"Invalid {what}: {token!r} (letters, digits, '-' and '_' only)"
        raise ValueError(msg)
