"""Thread-safe LRU cache for resolution results.

Memoizes the resolver's decision per normalized (base name, variant set).
Every lookup first passes the raw context through the validator, so inputs
that differ only in key order or in extra disallowed dimensions share one
entry.

Architecture:
    - Thread-safe using threading.RLock (reentrant lock)
    - LRU eviction via OrderedDict
    - String cache keys, inspectable and prefix-invalidatable
    - Entries are complete immutable ResolutionResult records

Cache Key Structure:
    ``baseName|dim1:value1|dim2:value2`` with dimensions sorted
    lexicographically, e.g. ``strings|form:formal|lang:es``.

Python 3.13+.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from threading import RLock

from variantloader.constants import CACHE_KEY_SEPARATOR, DEFAULT_CACHE_SIZE, VARIANT_DELIMITER
from variantloader.runtime.scoring import ResolutionResult
from variantloader.validation.validator import VariantValidator

__all__ = ["ResolutionCache", "make_cache_key"]

logger = logging.getLogger(__name__)


def make_cache_key(base_name: str, validated: Mapping[str, str]) -> str:
    """Derive the canonical cache key string.

    Args:
        base_name: Base name
        validated: Already-validated variant context

    Returns:
        ``base_name`` followed by ``|dim:value`` for each dimension in sorted order

    Example:
        >>> make_cache_key("strings", {"lang": "es", "form": "formal"})
        'strings|form:formal|lang:es'
        >>> make_cache_key("strings", {})
        'strings'
    """
    pairs = "".join(
        f"{CACHE_KEY_SEPARATOR}{dim}{VARIANT_DELIMITER}{value}"
        for dim, value in sorted(validated.items())
    )
    return f"{base_name}{pairs}"


class ResolutionCache:
    """Thread-safe LRU cache for ResolutionResult records.

    Uses OrderedDict for LRU eviction and RLock for thread safety.
    Returns None on cache miss.

    Attributes:
        maxsize: Maximum number of cache entries
        hits: Number of cache hits (for metrics)
        misses: Number of cache misses (for metrics)
    """

    __slots__ = ("_cache", "_hits", "_lock", "_maxsize", "_misses", "_validator")

    def __init__(self, validator: VariantValidator, maxsize: int = DEFAULT_CACHE_SIZE) -> None:
        """Initialize resolution cache.

        Args:
            validator: Validator applied to raw contexts before key derivation
            maxsize: Maximum number of entries (default: 1000)
        """
        if maxsize <= 0:
            msg = "maxsize must be positive"
            raise ValueError(msg)

        self._cache: OrderedDict[str, ResolutionResult] = OrderedDict()
        self._validator = validator
        self._maxsize = maxsize
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    def key_for(self, base_name: str, raw_context: Mapping[str, str] | None) -> str:
        """Validate raw_context and derive its cache key."""
        return make_cache_key(base_name, self._validator.validate(raw_context))

    def get(
        self, base_name: str, raw_context: Mapping[str, str] | None
    ) -> ResolutionResult | None:
        """Get cached resolution if it exists.

        Args:
            base_name: Base name
            raw_context: Unvalidated requested context

        Returns:
            Cached ResolutionResult or None
        """
        key = self.key_for(base_name, raw_context)
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                return self._cache[key]
            self._misses += 1
            return None

    def put(
        self,
        base_name: str,
        raw_context: Mapping[str, str] | None,
        result: ResolutionResult,
    ) -> None:
        """Store a resolution. Evicts the LRU entry if the cache is full.

        Args:
            base_name: Base name
            raw_context: Unvalidated requested context
            result: Resolution to store (replaces any existing entry)
        """
        key = self.key_for(base_name, raw_context)
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self._maxsize:
                self._cache.popitem(last=False)
            self._cache[key] = result

    def invalidate(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix.

        Args:
            prefix: Key prefix (``""`` matches everything)

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [key for key in self._cache if key.startswith(prefix)]
            for key in stale:
                del self._cache[key]
        if stale:
            logger.debug("Invalidated %d cached resolutions for prefix %r", len(stale), prefix)
        return len(stale)

    def invalidate_base(self, base_name: str) -> int:
        """Drop every entry for exactly base_name (not names it prefixes).

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [
                key
                for key in self._cache
                if key == base_name or key.startswith(base_name + CACHE_KEY_SEPARATOR)
            ]
            for key in stale:
                del self._cache[key]
        return len(stale)

    def keys(self) -> tuple[str, ...]:
        """Current cache keys, least recently used first."""
        with self._lock:
            return tuple(self._cache)

    def clear(self) -> None:
        """Clear all cached entries and reset metrics."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> dict[str, int | float]:
        """Get cache statistics.

        Returns:
            Dict with keys:
            - size (int): Current number of cached entries
            - maxsize (int): Maximum cache capacity
            - hits (int): Number of cache hits
            - misses (int): Number of cache misses
            - hit_rate (float): Hit rate as percentage (0.0-100.0)
        """
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0
            return {
                "size": len(self._cache),
                "maxsize": self._maxsize,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
            }

    def __len__(self) -> int:
        """Get current cache size."""
        with self._lock:
            return len(self._cache)

    @property
    def maxsize(self) -> int:
        """Maximum cache size."""
        return self._maxsize

    @property
    def hits(self) -> int:
        """Number of cache hits."""
        with self._lock:
            return self._hits

    @property
    def misses(self) -> int:
        """Number of cache misses."""
        with self._lock:
            return self._misses
