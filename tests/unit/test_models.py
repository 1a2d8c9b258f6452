"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from sketchmix.core.models import (
    CreationCreate,
    CreationRecord,
    EmotionAnalysis,
    EmotionScore,
    GenerateImageRequest,
    MusicAttribute,
    MusicResult,
    PipelineResult,
)


class TestEmotionModels:
    """Tests for emotion analysis models."""

    def test_reads_camel_case(self):
        analysis = EmotionAnalysis.model_validate({
            "description": "calm",
            "dominantEmotions": [{"name": "calm", "percentage": 70}],
        })

        assert analysis.dominant_emotions[0].name == "calm"
        assert analysis.dominant_emotions[0].percentage == 70.0

    def test_accepts_field_names(self):
        analysis = EmotionAnalysis(description="calm", dominant_emotions=[])

        assert analysis.dominant_emotions == []

    def test_dumps_camel_case(self):
        analysis = EmotionAnalysis(
            description="calm",
            dominant_emotions=[EmotionScore(name="calm", percentage=70)],
        )

        assert analysis.model_dump(by_alias=True) == {
            "description": "calm",
            "dominantEmotions": [{"name": "calm", "percentage": 70.0}],
        }

    def test_percentages_not_normalized(self):
        """Percentages are independent and need not sum to 100."""
        analysis = EmotionAnalysis(
            description="mixed",
            dominant_emotions=[
                EmotionScore(name="joy", percentage=90),
                EmotionScore(name="calm", percentage=80),
            ],
        )

        assert sum(e.percentage for e in analysis.dominant_emotions) == 170

    @pytest.mark.parametrize("percentage", [-1, 100.5])
    def test_percentage_bounds(self, percentage):
        with pytest.raises(ValidationError):
            EmotionScore(name="x", percentage=percentage)

    def test_attribute_bounds(self):
        with pytest.raises(ValidationError):
            MusicAttribute(name="Tempo", value="Fast", percentage=101)


class TestMusicResult:
    """Tests for MusicResult."""

    def test_defaults(self):
        result = MusicResult(music_url="https://x/track.mp3")

        assert result.attributes == []
        assert result.source == "composed"

    def test_invalid_source(self):
        with pytest.raises(ValidationError):
            MusicResult(music_url="https://x", source="remix")

    def test_pipeline_result_json(self, sample_analysis, sample_music):
        result = PipelineResult(
            image_url="https://img",
            analysis=sample_analysis,
            music=sample_music,
        )

        data = result.model_dump(by_alias=True)

        assert data["imageUrl"] == "https://img"
        assert data["music"]["musicUrl"] == "https://example.com/track.mp3"
        assert data["analysis"]["dominantEmotions"][0]["name"] == "calm"


class TestRequests:
    """Tests for request bodies."""

    def test_generate_image_request(self):
        request = GenerateImageRequest.model_validate({"drawingData": "abc"})

        assert request.drawing_data == "abc"

    def test_empty_drawing_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            GenerateImageRequest.model_validate({"drawingData": ""})

        assert "drawingData" in str(exc_info.value)

    def test_creation_requires_all_fields(self, sample_analysis):
        with pytest.raises(ValidationError):
            CreationCreate(
                drawing_data="d",
                generated_image="",
                emotional_analysis=sample_analysis,
                music_url="m",
            )

    def test_creation_record(self, sample_analysis):
        record = CreationRecord(
            id=1,
            created_at=1700000000,
            drawing_data="d",
            generated_image="g",
            emotional_analysis=sample_analysis,
            music_url="m",
        )

        data = record.model_dump(by_alias=True)
        assert data["createdAt"] == 1700000000
        assert data["emotionalAnalysis"]["description"] == sample_analysis.description
