"""Shared constants for variantloader.

Centralizes the filename convention, scoring weights, built-in dimension
value sets and cache limits so that the codec, validator, scorer and cache
agree on one source of truth.

Constants are grouped by domain:
- Filename convention: delimiters and default extensions
- Scoring weights: per-dimension contribution to a candidate's score
- Dimension vocabularies: value sets used for permissive classification
- Cache limits: memory bounds for the resolution cache
- Probe limits: request and memory bounds for probe-only sources

Python 3.13+. Zero external dependencies.
"""

import re

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Filename convention
    "VARIANT_DELIMITER",
    "EXPLICIT_SEPARATOR",
    "CACHE_KEY_SEPARATOR",
    "DEFAULT_EXTENSIONS",
    "SAFE_TOKEN_PATTERN",
    "BASE_NAME_PATTERN",
    # Scoring weights
    "LANG_WEIGHT",
    "GENDER_WEIGHT",
    "FORM_WEIGHT",
    "CUSTOM_WEIGHT",
    "MAX_CUSTOM_SCORE",
    # Dimension vocabularies
    "LANG_SHAPE_PATTERN",
    "GENDER_VALUES",
    "FORM_VALUES",
    # Cache limits
    "DEFAULT_CACHE_SIZE",
    # Probe limits
    "MAX_PROBE_DIMENSIONS",
    "DEFAULT_PROBE_MEMO_SIZE",
]

# ============================================================================
# FILENAME CONVENTION
# ============================================================================

# Separates the base name from each variant segment: strings:es:formal.json
VARIANT_DELIMITER: str = ":"

# Explicit dimension tagging inside one segment: strings:tone=surfer.json
EXPLICIT_SEPARATOR: str = "="

# Separates the base name and each dim:value pair in cache key strings.
CACHE_KEY_SEPARATOR: str = "|"

DEFAULT_EXTENSIONS: tuple[str, ...] = (".json",)

# Letters, digits, dash and underscore only; always applied with fullmatch().
# Rejects "/", "\", ".", ":" and "=", so in permissive mode no value can
# name a path outside the source.
SAFE_TOKEN_PATTERN: re.Pattern[str] = re.compile(r"[A-Za-z0-9_-]+")

# Base names may also contain single dots (app.settings) but never "..",
# a leading or trailing dot, or any path separator.
BASE_NAME_PATTERN: re.Pattern[str] = re.compile(r"[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*")

# ============================================================================
# SCORING WEIGHTS
# ============================================================================
#
# Weights are chosen so that a match on a higher-priority dimension always
# outranks any combination of lower-priority matches:
#
#   LANG (1000) > GENDER + FORM + MAX_CUSTOM_SCORE (100 + 50 + 49)
#   GENDER (100) > FORM + MAX_CUSTOM_SCORE (50 + 49)
#   FORM (50)   > MAX_CUSTOM_SCORE (49)
#
# Custom dimensions each contribute CUSTOM_WEIGHT, but their sum is capped
# at MAX_CUSTOM_SCORE to keep the ordering above intact for any number of
# custom dimensions.
# ============================================================================

LANG_WEIGHT: int = 1000
GENDER_WEIGHT: int = 100
FORM_WEIGHT: int = 50
CUSTOM_WEIGHT: int = 10
MAX_CUSTOM_SCORE: int = 49

# ============================================================================
# DIMENSION VOCABULARIES
# ============================================================================

# ISO 639 language code with optional uppercase region: en, es, fil, en-US.
# Shape alone is not enough; permissive classification also asks Babel.
LANG_SHAPE_PATTERN: re.Pattern[str] = re.compile(r"[a-z]{2,3}(-[A-Z]{2})?")

# m (masculine), f (feminine), x (neutral/non-binary)
GENDER_VALUES: frozenset[str] = frozenset({"m", "f", "x"})

# Formality/honorific levels
FORM_VALUES: frozenset[str] = frozenset(
    {"casual", "informal", "neutral", "polite", "formal", "honorific"}
)

# ============================================================================
# CACHE LIMITS
# ============================================================================

# Default maximum cached resolutions per loader.
# Distinct (base name, context) pairs in a typical application stay well
# below this bound.
DEFAULT_CACHE_SIZE: int = 1000

# ============================================================================
# PROBE LIMITS
# ============================================================================

# Maximum dimensions planned per request against a probe-only source.
# Planning covers every subset, so one request costs at most
# 2**MAX_PROBE_DIMENSIONS existence probes per extension (64 here). The three
# built-in dimensions always fit; excess custom dimensions are skipped.
MAX_PROBE_DIMENSIONS: int = 6

# Maximum memoized probe answers per loader (LRU eviction).
DEFAULT_PROBE_MEMO_SIZE: int = 10000
