"""Candidate scoring and best-match resolution.

Score is additive over dimension weights:

    lang    1000
    gender   100
    form      50
    custom    10 each, capped at 49 in total

A candidate that carries a dimension the request does not specify, or a
value that differs from the requested one, is disqualified outright rather
than scored low. A language-mismatched file therefore never beats a
language-matched one, whatever else it matches. The bare base file carries
no dimensions, always survives with score 0, and is the natural fallback.

Ties go to the preferred extension, then to the first discovered candidate.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from variantloader.constants import (
    CUSTOM_WEIGHT,
    FORM_WEIGHT,
    GENDER_WEIGHT,
    LANG_WEIGHT,
    MAX_CUSTOM_SCORE,
)
from variantloader.enums import Dimension
from variantloader.runtime.index import CandidateEntry

__all__ = ["DIMENSION_WEIGHTS", "ResolutionResult", "resolve", "score_candidate"]

DIMENSION_WEIGHTS: Mapping[str, int] = MappingProxyType(
    {
        Dimension.LANG.value: LANG_WEIGHT,
        Dimension.GENDER.value: GENDER_WEIGHT,
        Dimension.FORM.value: FORM_WEIGHT,
    }
)


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of one resolution.

    Attributes:
        base_name: Requested base name
        context: Validated context the resolution ran against
        entry: Winning candidate, or None when nothing matched
        score: Winning score, or None when nothing matched
    """

    base_name: str
    context: Mapping[str, str] = field(default_factory=dict)
    entry: CandidateEntry | None = None
    score: int | None = None

    @property
    def found(self) -> bool:
        """True if a candidate was selected."""
        return self.entry is not None

    @property
    def locator(self) -> str | None:
        """Locator of the winning candidate."""
        return self.entry.locator if self.entry is not None else None


def score_candidate(variants: Mapping[str, str], context: Mapping[str, str]) -> int | None:
    """Score one candidate's variant set against a validated context.

    Args:
        variants: Candidate's parsed variant set
        context: Validated requested context

    Returns:
        Non-negative score, or None if the candidate is disqualified

    Example:
        >>> score_candidate({"lang": "es", "form": "formal"}, {"lang": "es", "form": "formal"})
        1050
        >>> score_candidate({"lang": "es"}, {"lang": "es", "gender": "f"})
        1000
        >>> score_candidate({"lang": "es", "form": "formal"}, {"lang": "es"}) is None
        True
    """
    score = 0
    custom = 0
    for dimension, value in variants.items():
        if context.get(dimension) != value:
            return None
        weight = DIMENSION_WEIGHTS.get(dimension)
        if weight is None:
            custom += CUSTOM_WEIGHT
        else:
            score += weight
    return score + min(custom, MAX_CUSTOM_SCORE)


def resolve(
    base_name: str,
    context: Mapping[str, str],
    candidates: Sequence[CandidateEntry],
    extension_rank: Callable[[str], int] | None = None,
) -> ResolutionResult:
    """Select the best candidate for a validated context.

    Performs no I/O; operates on the in-memory candidate sequence.

    Args:
        base_name: Requested base name (candidates for other names are ignored)
        context: Validated requested context
        candidates: Candidates in discovery order
        extension_rank: Extension priority (lower wins ties); None = no preference

    Returns:
        ResolutionResult with the winner and its score, or with entry=None
    """
    best: CandidateEntry | None = None
    best_key: tuple[int, int] | None = None
    for candidate in candidates:
        if candidate.base_name != base_name:
            continue
        score = score_candidate(candidate.variants, context)
        if score is None:
            continue
        rank = extension_rank(candidate.extension) if extension_rank is not None else 0
        key = (score, -rank)
        # Strict comparison keeps the first discovered candidate on a full tie.
        if best_key is None or key > best_key:
            best, best_key = candidate, key

    frozen_context = MappingProxyType(dict(context))
    if best is None or best_key is None:
        return ResolutionResult(base_name, frozen_context)
    return ResolutionResult(base_name, frozen_context, best, best_key[0])
