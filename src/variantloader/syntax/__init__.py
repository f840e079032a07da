"""Variant filename syntax.

Exports:
    FilenameCodec: Parses and serializes baseName[:variant]*.ext filenames
    ParsedFilename: Immutable parse result
    is_valid_base_name: Base-name safety check shared with the loader

Python 3.13+.
"""

from .codec import FilenameCodec, ParsedFilename, is_valid_base_name, variant_sort_key

__all__ = ["FilenameCodec", "ParsedFilename", "is_valid_base_name", "variant_sort_key"]
