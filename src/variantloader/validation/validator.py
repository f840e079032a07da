"""Variant context validation and sanitization.

Requested variant contexts come from callers (often from request headers or
user profiles) and end up in filenames, so every pair is checked before it
reaches the cache, the index or a source. Unacceptable pairs are dropped
silently: a request for an untrusted variant degrades to a looser match
instead of failing.

Python 3.13+. Zero external dependencies.
"""

import logging
from collections.abc import Mapping

from variantloader.constants import SAFE_TOKEN_PATTERN
from variantloader.validation.allowed import AllowedVariants, AllowedVariantsConfig, Permissive

__all__ = ["VariantValidator"]

logger = logging.getLogger(__name__)


class VariantValidator:
    """Filters a requested variant context down to trusted pairs.

    Allow-list mode keeps ``(dim, value)`` only when ``dim`` is configured
    and ``value`` is one of its accepted values. Permissive mode keeps any
    pair whose dimension and value are safe tokens (letters, digits, dash,
    underscore), which rejects path separators and ``..``.

    Pure: the same input always yields the same output.

    Example:
        >>> validator = VariantValidator(AllowedVariants({"lang": ["en", "es"]}))
        >>> validator.validate({"lang": "../../etc", "gender": "f"})
        {}
        >>> validator.validate({"lang": "es"})
        {'lang': 'es'}
    """

    __slots__ = ("_allowed",)

    def __init__(self, allowed: AllowedVariantsConfig) -> None:
        """Initialize validator.

        Args:
            allowed: PERMISSIVE or an AllowedVariants instance
        """
        self._allowed = allowed

    @property
    def allowed(self) -> AllowedVariantsConfig:
        """The allowed-variants configuration in force."""
        return self._allowed

    @property
    def is_permissive(self) -> bool:
        """True when no allow-list restricts requested values."""
        return isinstance(self._allowed, Permissive)

    def accepts(self, dimension: object, value: object) -> bool:
        """Check a single dimension/value pair.

        Args:
            dimension: Dimension name (non-strings are rejected)
            value: Dimension value (non-strings are rejected)

        Returns:
            True if the pair would survive validate()
        """
        if not isinstance(dimension, str) or not isinstance(value, str):
            return False
        match self._allowed:
            case AllowedVariants() as allowed:
                return allowed.allows(dimension, value)
            case _:
                return bool(
                    SAFE_TOKEN_PATTERN.fullmatch(dimension) and SAFE_TOKEN_PATTERN.fullmatch(value)
                )

    def validate(self, requested: Mapping[str, str] | None) -> dict[str, str]:
        """Return the subset of requested that is trusted.

        Never raises for malformed pairs; they are dropped and logged at
        DEBUG level.

        Args:
            requested: Raw variant context (None treated as empty)

        Returns:
            New dict containing only accepted pairs, in input order
        """
        if not requested:
            return {}
        validated: dict[str, str] = {}
        for dimension, value in requested.items():
            if self.accepts(dimension, value):
                validated[dimension] = value
            else:
                logger.debug("Dropped variant %r=%r", dimension, value)
        return validated

    def validate_strict(self, requested: Mapping[str, str] | None) -> dict[str, str]:
        """Validate and refuse to drop anything.

        Used when the context names a file to be written, where silently
        losing a dimension would write to a different filename.

        Args:
            requested: Raw variant context (None treated as empty)

        Returns:
            Validated context, equal to requested

        Raises:
            ValueError: If any pair is not accepted
        """
        validated = self.validate(requested)
        if requested and len(validated) != len(requested):
            rejected = [
                f"{dim!r}={value!r}"
                for dim, value in requested.items()
                if dim not in validated
            ]
            msg = f"Variants not in allowed list: {', '.join(rejected)}"
            raise ValueError(msg)
        return validated
