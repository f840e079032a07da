"""VariantFileLoader Example - Variant Resolution and Fallback.

Demonstrates how a loader picks the most specific file for a request and
falls back when a variant is missing.

Scenarios covered:
1. Language and formality variants with fallback to the base file
2. Gendered content with no bare base file
3. Untrusted input: traversal attempts are dropped, never followed
4. Writing a new variant and seeing it picked up immediately

Python 3.13+.
"""

from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

from variantloader import LoaderConfig, NoVariantFoundError, VariantFileLoader

FILES = {
    "strings.json": {"welcome": "Welcome"},
    "strings:es.json": {"welcome": "Bienvenido"},
    "strings:es:formal.json": {"welcome": "Bienvenido, estimado cliente"},
    "profile:f.json": {"title": "Ms."},
    "profile:m.json": {"title": "Mr."},
}

ALLOWED = {
    "lang": ["en", "es", "ja"],
    "gender": ["m", "f", "x"],
    "form": ["casual", "formal"],
}


async def example_1_fallback(loader: VariantFileLoader) -> None:
    """Example 1: Most specific match, then fallback."""
    print("=" * 60)
    print("Example 1: Language + formality with fallback")
    print("=" * 60)

    for variants in (
        {"lang": "es", "form": "formal"},
        {"lang": "es", "form": "casual"},
        {"lang": "ja"},
        {},
    ):
        result = await loader.resolve("strings", variants)
        content = await loader.load("strings", variants)
        print(f"  {variants!s:40} -> {result.locator} (score {result.score}): {content}")


async def example_2_no_base(loader: VariantFileLoader) -> None:
    """Example 2: Gendered files without a bare base file."""
    print("\n" + "=" * 60)
    print("Example 2: Gendered profiles")
    print("=" * 60)

    for gender in ("f", "m", "x"):
        try:
            content = await loader.load("profile", {"gender": gender})
            print(f"  gender={gender}: {content}")
        except NoVariantFoundError as e:
            print(f"  gender={gender}: {e}")


async def example_3_untrusted_input(loader: VariantFileLoader) -> None:
    """Example 3: Hostile variant values are dropped."""
    print("\n" + "=" * 60)
    print("Example 3: Untrusted variant values")
    print("=" * 60)

    hostile = {"lang": "../../etc/passwd", "form": "formal"}
    print(f"  requested: {hostile}")
    print(f"  cache key: {loader.cache_key('strings', hostile)}")
    print(f"  content:   {await loader.load('strings', hostile)}")


async def example_4_save(loader: VariantFileLoader) -> None:
    """Example 4: Save a new variant."""
    print("\n" + "=" * 60)
    print("Example 4: Saving a Japanese variant")
    print("=" * 60)

    print(f"  before: {await loader.load('strings', {'lang': 'ja'})}")
    locator = await loader.save("strings", {"welcome": "Yokoso"}, {"lang": "ja"})
    print(f"  wrote:  {locator}")
    print(f"  after:  {await loader.load('strings', {'lang': 'ja'})}")
    print(f"  stats:  {loader.get_cache_stats()}")


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        for name, content in FILES.items():
            (root / name).write_text(json.dumps(content), encoding="utf-8")

        config = LoaderConfig(base_dir=root, allowed_variants=ALLOWED, preload=True)
        async with VariantFileLoader(config) as loader:
            await example_1_fallback(loader)
            await example_2_no_base(loader)
            await example_3_untrusted_input(loader)
            await example_4_save(loader)


if __name__ == "__main__":
    asyncio.run(main())
