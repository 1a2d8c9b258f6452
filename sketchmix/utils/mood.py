"""Keyword-driven mood classification for music prompts and sample tracks."""

import logging
from dataclasses import dataclass
from typing import Generic, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class KeywordRule(Generic[T]):
    """Maps any of a set of keywords to a category.

    Matching is a case-insensitive substring test, so "excite" also matches
    "excited" but not "exciting".
    """
    keywords: Tuple[str, ...]
    category: T

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)


def first_match(rules: Sequence[KeywordRule[T]], text: str, default: T) -> T:
    """Return the category of the first rule matching text, else default."""
    for rule in rules:
        if rule.matches(text):
            return rule.category
    return default


@dataclass(frozen=True)
class MusicStyle:
    """Mood adjective and genre used to build a composition prompt."""
    mood: str
    genre: str


TRACK_DURATION = "30 seconds"

DEFAULT_STYLE = MusicStyle(mood="neutral", genre="ambient")

# Evaluated in order; the first match wins
COMPOSITION_STYLES: Tuple[KeywordRule[MusicStyle], ...] = (
    KeywordRule(
        ("joy", "happy", "excite", "cheerful", "upbeat", "energetic"),
        MusicStyle(mood="cheerful", genre="upbeat lo-fi"),
    ),
    KeywordRule(
        ("calm", "peaceful", "serene", "tranquil"),
        MusicStyle(mood="calming", genre="peaceful ambient"),
    ),
    KeywordRule(
        ("sad", "melancholy", "somber", "gloomy"),
        MusicStyle(mood="melancholic", genre="gentle piano"),
    ),
    KeywordRule(
        ("tense", "dramatic", "suspense", "mysterious"),
        MusicStyle(mood="suspenseful", genre="cinematic"),
    ),
    KeywordRule(
        ("wonder", "magical", "fantasy", "dreamy"),
        MusicStyle(mood="magical", genre="fantasy ambient"),
    ),
)


def classify_style(emotional_description: str) -> MusicStyle:
    return first_match(COMPOSITION_STYLES, emotional_description, DEFAULT_STYLE)


def format_composition_prompt(emotional_description: str) -> str:
    """Build a short composition prompt from an emotional description.

    Args:
        emotional_description: Free text from the emotion analysis stage

    Returns:
        e.g. "30 seconds calming peaceful ambient music that conveys a calm lake"
    """
    style = classify_style(emotional_description)
    return f"{TRACK_DURATION} {style.mood} {style.genre} music that conveys {emotional_description}"


@dataclass(frozen=True)
class SampleTrack:
    """A pre-recorded track used when composition is unavailable."""
    name: str
    url: str


UPBEAT_TRACK = SampleTrack(
    "upbeat", "https://cdn.freesound.org/previews/413/413854_4708614-lq.mp3"
)
PEACEFUL_TRACK = SampleTrack(
    "peaceful", "https://cdn.freesound.org/previews/476/476340_5903033-lq.mp3"
)
ENERGETIC_TRACK = SampleTrack(
    "energetic", "https://cdn.freesound.org/previews/369/369515_5549257-lq.mp3"
)
MYSTERIOUS_TRACK = SampleTrack(
    "mysterious", "https://cdn.freesound.org/previews/527/527507_2586050-lq.mp3"
)
MELANCHOLIC_TRACK = SampleTrack(
    "melancholic", "https://cdn.freesound.org/previews/542/542828_9558986-lq.mp3"
)

SAMPLE_TRACKS: Tuple[SampleTrack, ...] = (
    UPBEAT_TRACK,
    PEACEFUL_TRACK,
    ENERGETIC_TRACK,
    MYSTERIOUS_TRACK,
    MELANCHOLIC_TRACK,
)

DEFAULT_SAMPLE_TRACK = UPBEAT_TRACK

SAMPLE_TRACK_RULES: Tuple[KeywordRule[SampleTrack], ...] = (
    KeywordRule(("calm", "peaceful", "serene"), PEACEFUL_TRACK),
    KeywordRule(("energy", "energetic", "dynamic", "exciting"), ENERGETIC_TRACK),
    KeywordRule(("mysterious", "curious", "wonder"), MYSTERIOUS_TRACK),
    KeywordRule(("sad", "melancholy", "somber"), MELANCHOLIC_TRACK),
)


def select_sample_track(emotional_description: str) -> SampleTrack:
    """Pick a sample track for a description. Deterministic; never fails."""
    track = first_match(SAMPLE_TRACK_RULES, emotional_description, DEFAULT_SAMPLE_TRACK)
    logger.debug(f"Selected sample track '{track.name}' for fallback")
    return track
