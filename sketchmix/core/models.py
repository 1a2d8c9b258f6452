"""Core data models for the drawing-to-music pipeline."""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class EmotionScore(CamelModel):
    """A single emotion detected in an image.

    Attributes:
        name: Emotion name (e.g. "calm")
        percentage: Strength of the emotion, 0-100 (not normalized)
    """

    name: str = Field(..., description="Emotion name")
    percentage: float = Field(
        ...,
        ge=0,
        le=100,
        description="Strength of the emotion as a percentage"
    )


class EmotionAnalysis(CamelModel):
    """Emotional reading of a generated image.

    Attributes:
        description: Free-text description of the image's mood
        dominant_emotions: Ordered emotions as reported by the provider
    """

    description: str = Field(..., description="Emotional description of the image")
    dominant_emotions: List[EmotionScore] = Field(
        default_factory=list,
        description="Dominant emotions in provider order"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "a calm blue lake at dusk",
                "dominantEmotions": [{"name": "calm", "percentage": 70}]
            }
        }
    )


class MusicAttribute(CamelModel):
    """A named musical quality derived from an emotional description."""

    name: str = Field(..., description="Attribute name (e.g. Tempo)")
    value: str = Field(..., description="Descriptive value (e.g. Upbeat)")
    percentage: float = Field(..., ge=0, le=100)


class MusicResult(CamelModel):
    """Output of the music stage.

    Attributes:
        music_url: URL of the composed or sample track
        attributes: Musical attributes, empty when extraction failed
        source: "composed" when the composition service delivered the track,
            "fallback" when a sample track was selected
    """

    music_url: str
    attributes: List[MusicAttribute] = Field(default_factory=list)
    source: Literal["composed", "fallback"] = "composed"


class PipelineResult(CamelModel):
    """Everything produced by one run of the generation pipeline."""

    image_url: str
    analysis: EmotionAnalysis
    music: MusicResult


# HTTP request bodies

class GenerateImageRequest(CamelModel):
    drawing_data: str = Field(..., min_length=1, description="Data URI or base64 PNG")


class GenerateImageResponse(CamelModel):
    image_url: str


class AnalyzeImageRequest(CamelModel):
    image_url: str = Field(..., min_length=1)


class AnalyzeImageResponse(CamelModel):
    analysis: EmotionAnalysis


class GenerateMusicRequest(CamelModel):
    emotional_description: str = Field(..., min_length=1)


class CreationCreate(CamelModel):
    """Fields supplied by the client when saving a creation."""

    drawing_data: str = Field(..., min_length=1)
    generated_image: str = Field(..., min_length=1)
    emotional_analysis: EmotionAnalysis
    music_url: str = Field(..., min_length=1)


class CreationRecord(CreationCreate):
    """A persisted creation."""

    id: int
    created_at: int = Field(..., description="Unix timestamp in seconds")


class MessageResponse(BaseModel):
    message: str
    detail: Optional[str] = None
