"""Tests for candidate scoring and best-match selection."""

from __future__ import annotations

from types import MappingProxyType

import pytest
from hypothesis import given
from hypothesis import strategies as st

from variantloader.runtime.index import CandidateEntry
from variantloader.runtime.scoring import (
    DIMENSION_WEIGHTS,
    ResolutionResult,
    resolve,
    score_candidate,
)
from variantloader.syntax.codec import FilenameCodec
from variantloader.validation import PERMISSIVE


def _entries(*names: str) -> list[CandidateEntry]:
    codec = FilenameCodec(PERMISSIVE, (".json", ".yaml"))
    entries = []
    for name in names:
        parsed = codec.parse(name)
        entries.append(CandidateEntry(parsed.base_name, parsed.variants, parsed.extension, name))
    return entries


class TestScoreCandidate:
    """Additive scoring with disqualification."""

    def test_weights(self) -> None:
        assert dict(DIMENSION_WEIGHTS) == {"lang": 1000, "gender": 100, "form": 50}

    def test_base_file_scores_zero(self) -> None:
        assert score_candidate({}, {"lang": "es"}) == 0
        assert score_candidate({}, {}) == 0

    def test_full_builtin_match(self) -> None:
        context = {"lang": "es", "gender": "f", "form": "formal"}
        assert score_candidate(context, context) == 1150

    def test_mismatched_value_disqualifies(self) -> None:
        assert score_candidate({"lang": "en"}, {"lang": "es"}) is None

    def test_unrequested_dimension_disqualifies(self) -> None:
        assert score_candidate({"lang": "es", "form": "formal"}, {"lang": "es"}) is None

    def test_absent_candidate_dimension_is_neutral(self) -> None:
        assert score_candidate({"lang": "es"}, {"lang": "es", "gender": "f"}) == 1000

    def test_custom_dimensions(self) -> None:
        assert score_candidate({"tone": "surfer"}, {"tone": "surfer"}) == 10
        both = {"tone": "surfer", "era": "1920s"}
        assert score_candidate(both, both) == 20

    def test_custom_total_capped_below_form(self) -> None:
        variants = {f"custom{i}": "v" for i in range(8)}
        assert score_candidate(variants, variants) == 49

    @given(count=st.integers(min_value=0, max_value=30))
    def test_custom_never_outweighs_form(self, count: int) -> None:
        """Property: any number of custom matches stays below one form match."""
        variants = {f"c{i}": "v" for i in range(count)}
        score = score_candidate(variants, variants)
        assert score is not None
        assert score < DIMENSION_WEIGHTS["form"]


class TestResolveScenarios:
    """Worked resolution examples."""

    def test_language_match(self) -> None:
        result = resolve("strings", {"lang": "es"}, _entries("strings.json", "strings:es.json"))
        assert result.locator == "strings:es.json"
        assert result.score == 1000

    def test_language_and_formality(self) -> None:
        candidates = _entries(
            "strings.json",
            "strings:es.json",
            "strings:es:formal.json",
            "strings:es:casual.json",
        )
        result = resolve("strings", {"lang": "es", "form": "formal"}, candidates)
        assert result.locator == "strings:es:formal.json"
        assert result.score == 1050

    def test_unmatched_gender_falls_back_to_language(self) -> None:
        candidates = _entries("strings.json", "strings:es.json")
        result = resolve("strings", {"lang": "es", "gender": "f"}, candidates)
        assert result.locator == "strings:es.json"
        assert result.score == 1000

    def test_equivalent_filenames_first_discovered_wins(self) -> None:
        candidates = _entries("hero:es:f.json", "hero:f:es.json")
        result = resolve("hero", {"lang": "es", "gender": "f"}, candidates)
        assert result.locator == "hero:es:f.json"
        assert result.score == 1100

        reversed_result = resolve("hero", {"lang": "es", "gender": "f"}, candidates[::-1])
        assert reversed_result.locator == "hero:f:es.json"

    def test_empty_context_selects_base(self) -> None:
        candidates = _entries("strings:es.json", "strings.json")
        result = resolve("strings", {}, candidates)
        assert result.locator == "strings.json"
        assert result.score == 0

    def test_wrong_language_never_wins(self) -> None:
        candidates = _entries("strings.json", "strings:en:f:formal.json")
        result = resolve("strings", {"lang": "es", "gender": "f", "form": "formal"}, candidates)
        assert result.locator == "strings.json"

    def test_no_match(self) -> None:
        result = resolve("strings", {"lang": "es"}, _entries("strings:en.json"))
        assert not result.found
        assert result.entry is None
        assert result.score is None
        assert result.locator is None
        assert dict(result.context) == {"lang": "es"}

    def test_other_base_names_ignored(self) -> None:
        result = resolve("strings", {}, _entries("profile.json"))
        assert not result.found


class TestTieBreaking:
    def test_preferred_extension_wins(self) -> None:
        codec = FilenameCodec(PERMISSIVE, (".json", ".yaml"))
        candidates = _entries("strings:es.yaml", "strings:es.json")
        result = resolve("strings", {"lang": "es"}, candidates, codec.extension_rank)
        assert result.locator == "strings:es.json"

    def test_without_rank_first_discovered_wins(self) -> None:
        candidates = _entries("strings:es.yaml", "strings:es.json")
        result = resolve("strings", {"lang": "es"}, candidates)
        assert result.locator == "strings:es.yaml"

    def test_score_beats_extension(self) -> None:
        codec = FilenameCodec(PERMISSIVE, (".json", ".yaml"))
        candidates = _entries("strings.json", "strings:es.yaml")
        result = resolve("strings", {"lang": "es"}, candidates, codec.extension_rank)
        assert result.locator == "strings:es.yaml"


class TestResolutionResult:
    def test_context_is_frozen(self) -> None:
        context = {"lang": "es"}
        result = resolve("strings", context, _entries("strings:es.json"))
        context["lang"] = "en"
        assert dict(result.context) == {"lang": "es"}
        assert isinstance(result.context, MappingProxyType)

    def test_immutable(self) -> None:
        result = ResolutionResult("strings")
        with pytest.raises(AttributeError):
            result.score = 5  # type: ignore[misc]


class TestBestScoreProperty:
    @given(
        requested=st.fixed_dictionaries(
            {},
            optional={
                "lang": st.sampled_from(["en", "es", "ja"]),
                "gender": st.sampled_from(["m", "f"]),
                "form": st.sampled_from(["casual", "formal"]),
            },
        ),
        names=st.lists(
            st.sampled_from(
                [
                    "strings.json",
                    "strings:es.json",
                    "strings:en.json",
                    "strings:es:f.json",
                    "strings:es:formal.json",
                    "strings:ja:m:casual.json",
                    "strings:f:formal.json",
                ]
            ),
            unique=True,
            max_size=7,
        ),
    )
    def test_winner_has_maximal_score(self, requested: dict[str, str], names: list[str]) -> None:
        """Property: no surviving candidate scores higher than the winner."""
        candidates = _entries(*names)
        result = resolve("strings", requested, candidates)
        scores = [
            score
            for entry in candidates
            if (score := score_candidate(entry.variants, requested)) is not None
        ]
        if not scores:
            assert not result.found
            return
        assert result.score == max(scores)
        assert result.entry is not None
        assert all(requested.get(dim) == value for dim, value in result.entry.variants.items())
