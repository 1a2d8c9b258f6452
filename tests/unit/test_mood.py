"""Unit tests for mood classification, prompts and sample tracks."""

import pytest

from sketchmix.utils.mood import (
    DEFAULT_SAMPLE_TRACK,
    ENERGETIC_TRACK,
    KeywordRule,
    MELANCHOLIC_TRACK,
    MYSTERIOUS_TRACK,
    PEACEFUL_TRACK,
    SAMPLE_TRACKS,
    classify_style,
    first_match,
    format_composition_prompt,
    select_sample_track,
)


class TestKeywordRules:
    """Tests for keyword matching."""

    def test_case_insensitive_substring(self):
        rule = KeywordRule(("calm",), "c")

        assert rule.matches("A CALMING scene")
        assert not rule.matches("stormy")

    def test_first_match_wins(self):
        rules = (KeywordRule(("a",), 1), KeywordRule(("a",), 2))

        assert first_match(rules, "a", 0) == 1

    def test_default_when_nothing_matches(self):
        assert first_match((KeywordRule(("x",), 1),), "y", 0) == 0


class TestCompositionPrompt:
    """Tests for the composition prompt formatter."""

    def test_calm_description(self):
        assert format_composition_prompt("a calm blue lake") == (
            "30 seconds calming peaceful ambient music that conveys a calm blue lake"
        )

    @pytest.mark.parametrize("description,mood,genre", [
        ("pure joy", "cheerful", "upbeat lo-fi"),
        ("so excited", "cheerful", "upbeat lo-fi"),
        ("an exciting race", "neutral", "ambient"),
        ("serene garden", "calming", "peaceful ambient"),
        ("a gloomy alley", "melancholic", "gentle piano"),
        ("dramatic storm", "suspenseful", "cinematic"),
        ("a dreamy castle", "magical", "fantasy ambient"),
        ("a plain box", "neutral", "ambient"),
    ])
    def test_style_clusters(self, description, mood, genre):
        style = classify_style(description)

        assert (style.mood, style.genre) == (mood, genre)

    def test_first_cluster_wins(self):
        """Joy is checked before calm."""
        assert classify_style("happy and calm").mood == "cheerful"

    def test_description_is_embedded_verbatim(self):
        prompt = format_composition_prompt("Mysterious Fog")

        assert prompt.endswith("music that conveys Mysterious Fog")
        assert prompt.startswith("30 seconds suspenseful cinematic")


class TestSampleTracks:
    """Tests for sample track selection."""

    @pytest.mark.parametrize("description,track", [
        ("a calm scene", PEACEFUL_TRACK),
        ("full of energy", ENERGETIC_TRACK),
        ("energetic dancing", ENERGETIC_TRACK),
        ("curious creatures", MYSTERIOUS_TRACK),
        ("a somber mood", MELANCHOLIC_TRACK),
        ("a red square", DEFAULT_SAMPLE_TRACK),
    ])
    def test_selection(self, description, track):
        assert select_sample_track(description) == track

    def test_rule_order(self):
        """Peaceful rules are checked before energetic ones."""
        assert select_sample_track("calm yet dynamic") == PEACEFUL_TRACK

    def test_deterministic_and_total(self):
        for description in ("", "???", "calm", "x" * 1000):
            first = select_sample_track(description)
            assert select_sample_track(description) == first
            assert first in SAMPLE_TRACKS

    def test_urls_are_mp3(self):
        assert all(track.url.endswith(".mp3") for track in SAMPLE_TRACKS)
