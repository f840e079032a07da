"""Variant validation package.

Submodules:
    allowed   - PERMISSIVE sentinel, AllowedVariants allow-lists, config normalization
    validator - VariantValidator (requested-context sanitization)

Python 3.13+. Zero external dependencies.
"""

from .allowed import (
    PERMISSIVE,
    AllowedVariants,
    AllowedVariantsConfig,
    Permissive,
    allowed_from_config,
)
from .validator import VariantValidator

__all__ = [
    "PERMISSIVE",
    "AllowedVariants",
    "AllowedVariantsConfig",
    "Permissive",
    "VariantValidator",
    "allowed_from_config",
]
