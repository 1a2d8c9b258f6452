"""Shared test fixtures and configuration."""

import pytest
import os
from unittest.mock import AsyncMock, Mock
from PIL import Image

from sketchmix.core.models import EmotionAnalysis, EmotionScore, MusicAttribute, MusicResult
from sketchmix.utils.image_utils import surface_to_data_url


@pytest.fixture
def blank_surface():
    """Return a fully transparent 100x100 RGBA surface."""
    return Image.new("RGBA", (100, 100), (0, 0, 0, 0))


@pytest.fixture
def drawn_surface(blank_surface):
    """Return a surface with a small red square drawn on it."""
    blank_surface.paste((255, 0, 0, 255), (40, 40, 60, 60))
    return blank_surface


@pytest.fixture
def drawing_data(drawn_surface):
    """Return a non-empty drawing as a PNG data URI."""
    return surface_to_data_url(drawn_surface)


@pytest.fixture
def empty_drawing_data():
    """Return an empty (fully transparent) drawing as a PNG data URI."""
    return surface_to_data_url(Image.new("RGBA", (100, 100), (0, 0, 0, 0)))


@pytest.fixture
def sample_analysis():
    """Return a sample EmotionAnalysis for testing."""
    return EmotionAnalysis(
        description="a calm blue lake at dusk",
        dominant_emotions=[
            EmotionScore(name="calm", percentage=70),
            EmotionScore(name="wonder", percentage=30),
        ],
    )


@pytest.fixture
def sample_attributes():
    """Return sample musical attributes."""
    return [
        MusicAttribute(name="Tempo", value="Slow", percentage=30),
        MusicAttribute(name="Mood", value="Serene", percentage=80),
    ]


@pytest.fixture
def sample_music(sample_attributes):
    """Return a composed MusicResult."""
    return MusicResult(
        music_url="https://example.com/track.mp3",
        attributes=sample_attributes,
        source="composed",
    )


@pytest.fixture
def mock_stylizer():
    """Return a mocked stage 1 backend."""
    stylizer = Mock()
    stylizer.name = "MockStylizer"
    stylizer.stylize = AsyncMock(return_value="https://example.com/art.png")
    stylizer.health_check = AsyncMock(return_value=True)
    return stylizer


@pytest.fixture
def mock_analyzer(sample_analysis):
    """Return a mocked stage 2 backend."""
    analyzer = Mock()
    analyzer.name = "MockAnalyzer"
    analyzer.analyze = AsyncMock(return_value=sample_analysis)
    return analyzer


@pytest.fixture
def mock_music_generator(sample_music):
    """Return a mocked stage 3 orchestrator."""
    generator = Mock()
    generator.generate = AsyncMock(return_value=sample_music)
    return generator


@pytest.fixture
def test_api_key():
    """Return a test API key."""
    return "sk_test_key_12345"


# Skip integration tests unless explicitly requested
def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests unless RUN_INTEGRATION_TESTS is set."""
    skip_integration = pytest.mark.skip(reason="Integration tests disabled (set RUN_INTEGRATION_TESTS=true to enable)")
    for item in items:
        if "integration" in item.keywords:
            if not os.getenv("RUN_INTEGRATION_TESTS", "").lower() == "true":
                item.add_marker(skip_integration)
