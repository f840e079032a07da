"""Enumerations for variantloader type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, so Dimension.LANG can be used
directly as a mapping key next to plain custom dimension names.

Python 3.13+.
"""

from enum import StrEnum


class Dimension(StrEnum):
    """Built-in variant dimensions with fixed scoring weight.

    Declaration order is the classification priority for bare filename
    segments: a value is checked against lang first, then gender, then form.
    """

    LANG = "lang"
    """Language code: strings:es.json"""

    GENDER = "gender"
    """Grammatical gender: profile:f.json"""

    FORM = "form"
    """Formality level: strings:es:formal.json"""


class ProbeState(StrEnum):
    """Memoized existence of a probed candidate locator.

    StrEnum provides automatic string conversion: str(ProbeState.EXISTS) == "exists"
    """

    UNKNOWN = "unknown"
    """Not probed yet, or the last probe failed with an I/O error."""

    EXISTS = "exists"
    """Probe confirmed the resource exists."""

    ABSENT = "absent"
    """Probe confirmed the resource does not exist."""


BUILTIN_DIMENSIONS: tuple[Dimension, ...] = tuple(Dimension)

__all__ = [
    "BUILTIN_DIMENSIONS",
    "Dimension",
    "ProbeState",
]
