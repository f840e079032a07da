"""Runtime resolution engine: index, scoring, cache and configuration.

Submodules:
    config  - LoaderConfig (frozen, validated at construction)
    index   - CandidateEntry, CandidateIndex (listable snapshot)
    probe   - ProbeIndex (memoized existence probes)
    scoring - score_candidate, resolve, ResolutionResult
    cache   - ResolutionCache, make_cache_key

Python 3.13+.
"""

from .cache import ResolutionCache, make_cache_key
from .config import LoaderConfig
from .index import CandidateEntry, CandidateIndex
from .probe import ProbeIndex
from .scoring import DIMENSION_WEIGHTS, ResolutionResult, resolve, score_candidate

__all__ = [
    "DIMENSION_WEIGHTS",
    "CandidateEntry",
    "CandidateIndex",
    "LoaderConfig",
    "ProbeIndex",
    "ResolutionCache",
    "ResolutionResult",
    "make_cache_key",
    "resolve",
    "score_candidate",
]
