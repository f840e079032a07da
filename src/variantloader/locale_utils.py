"""Locale utilities for language-dimension classification.

Centralizes BCP-47 to POSIX normalization and the Babel lookup used to
decide whether a bare filename segment is a language code.

Python 3.13+.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from variantloader.constants import LANG_SHAPE_PATTERN

if TYPE_CHECKING:
    from babel import Locale

__all__ = [
    "get_babel_locale",
    "is_known_language",
    "normalize_locale",
]


def normalize_locale(locale_code: str) -> str:
    """Convert BCP-47 locale code to POSIX format for Babel.

    Args:
        locale_code: BCP-47 locale code (e.g., "en-US", "pt-BR")

    Returns:
        POSIX-formatted locale code (e.g., "en_US", "pt_BR")

    Example:
        >>> normalize_locale("en-US")
        'en_US'
        >>> normalize_locale("en")
        'en'
    """
    return locale_code.replace("-", "_")


@functools.lru_cache(maxsize=128)
def get_babel_locale(locale_code: str) -> Locale:
    """Get a Babel Locale object with caching.

    Args:
        locale_code: Locale code (BCP-47 or POSIX format accepted)

    Returns:
        Babel Locale object

    Raises:
        babel.core.UnknownLocaleError: If locale is not recognized
        ValueError: If locale format is invalid
    """
    # Lazy import: Babel loads CLDR data at import time; defer until needed
    from babel import Locale  # noqa: PLC0415

    return Locale.parse(normalize_locale(locale_code))


@functools.lru_cache(maxsize=512)
def is_known_language(value: str) -> bool:
    """Check whether a bare token names a language known to CLDR.

    The token must have language-code shape (``es``, ``fil``, ``pt-BR``)
    before Babel is consulted, so ordinary words like ``formal`` or
    ``surfer`` are never looked up.

    Args:
        value: Candidate language code

    Returns:
        True if the shape matches and Babel has locale data for it

    Example:
        >>> is_known_language("es")
        True
        >>> is_known_language("zz")
        False
        >>> is_known_language("formal")
        False
    """
    if not LANG_SHAPE_PATTERN.fullmatch(value):
        return False

    from babel.core import UnknownLocaleError  # noqa: PLC0415

    try:
        get_babel_locale(value)
    except (UnknownLocaleError, ValueError):
        return False
    return True
