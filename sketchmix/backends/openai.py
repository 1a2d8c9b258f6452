"""OpenAI backends: sketch stylization, emotion analysis and musical attributes."""

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Optional
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from sketchmix.core.base_backend import (
    AttributeExtractor,
    BaseBackend,
    EmotionAnalyzer,
    ImageStylizer,
)
from sketchmix.core.models import EmotionAnalysis, MusicAttribute
from sketchmix.utils.image_utils import prepare_drawing_for_upload, strip_data_uri_prefix

logger = logging.getLogger(__name__)


DESCRIBE_SYSTEM_PROMPT = (
    "You are an assistant who analyzes drawing content. "
    "Describe what you see in the image in a concise manner."
)

STYLIZE_PROMPT = (
    "Transform this into a vibrant, professional artistic image: {description}. "
    "Use colorful, animated style with clean lines. Give it a dynamic, polished "
    "artistic look while staying true to the original concept, bring out emotions "
    "and consider it in the style of a known artist."
)

ANALYZE_SYSTEM_PROMPT = (
    "You are an expert at analyzing images and extracting emotional context. "
    "Analyze the provided image and extract the emotional tone and mood. Provide a "
    "detailed description focused on emotions, and identify the dominant emotions "
    "with percentage values. Respond with JSON in the format: "
    "{ 'description': 'detailed emotional description', "
    "'dominantEmotions': [{ 'name': 'emotion name', 'percentage': 85 }, ...] }"
)

ATTRIBUTES_SYSTEM_PROMPT = (
    "You are an expert at translating emotional descriptions into musical attributes. "
    "Convert the emotional description into musical attributes with percentage values. "
    "Respond with JSON in the format: { 'attributes': ["
    "{ 'name': 'Tempo', 'value': 'Upbeat', 'percentage': 75 }, "
    "{ 'name': 'Mood', 'value': 'Cheerful', 'percentage': 85 }, "
    "{ 'name': 'Intensity', 'value': 'Medium', 'percentage': 60 }, "
    "{ 'name': 'Complexity', 'value': 'Layered', 'percentage': 70 }] }"
)

NO_DESCRIPTION = "No emotional description generated"


class OpenAIBackend(BaseBackend):
    """Shared client handling for the OpenAI adapters.

    Attributes:
        api_key: OpenAI API key
        model: Chat model used for vision and JSON responses
        client: AsyncOpenAI client instance
    """

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None
    ):
        """Initialize the OpenAI backend.

        Args:
            api_key: OpenAI API key
            model: Optional chat model (defaults to gpt-4o)
            timeout: Per-request timeout in seconds
            client: Optional pre-built client shared between adapters

        Raises:
            ValueError: If API key is empty
        """
        super().__init__(api_key)

        if not api_key:
            raise ValueError("OpenAI API key is required")

        self.model = model or self.DEFAULT_MODEL
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)
        logger.info(f"Initialized {self.__class__.__name__} with model: {self.model}")

    async def _complete_json(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or "{}"
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"OpenAI returned malformed JSON: {e}") from e

    @staticmethod
    def _translate_error(error: openai.OpenAIError) -> Exception:
        """Map SDK errors onto ConnectionError / RuntimeError."""
        if isinstance(error, openai.AuthenticationError):
            return ConnectionError(
                "Invalid OpenAI API key. Please check your OPENAI_API_KEY."
            )
        if isinstance(error, openai.RateLimitError):
            return RuntimeError("Rate limit exceeded. Please try again later.")
        return RuntimeError(f"OpenAI API error: {error}")

    async def health_check(self) -> bool:
        try:
            logger.debug("Performing health check...")
            await self.client.models.list()
            logger.debug("Health check passed")
            return True
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return False

    async def aclose(self) -> None:
        await self.client.close()

    @property
    def name(self) -> str:
        return "OpenAI"


class OpenAIStylizer(OpenAIBackend, ImageStylizer):
    """Describes the sketch with a vision model, then paints it with DALL-E.

    Attributes:
        image_model: Image generation model
    """

    DEFAULT_IMAGE_MODEL = "dall-e-3"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        image_model: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None
    ):
        super().__init__(api_key, model=model, timeout=timeout, client=client)
        self.image_model = image_model or self.DEFAULT_IMAGE_MODEL

    async def stylize(self, drawing_data: str) -> str:
        """Generate an artistic rendition of a drawing.

        Args:
            drawing_data: Base64 PNG, with or without a data-URI prefix

        Returns:
            URL of the generated image

        Raises:
            RuntimeError: If the drawing cannot be decoded or generation fails
            ConnectionError: If the API key is rejected
        """
        try:
            raw = base64.b64decode(strip_data_uri_prefix(drawing_data))
            processed = prepare_drawing_for_upload(raw)
        except (binascii.Error, ValueError, OSError) as e:
            raise RuntimeError(f"Drawing could not be processed: {e}") from e

        logger.info(f"Prepared drawing for upload ({len(raw)} -> {len(processed)} bytes)")

        try:
            description = await self._describe_drawing(processed)
            logger.info(f"Drawing description: {description[:80]}")

            response = await self.client.images.generate(
                model=self.image_model,
                prompt=STYLIZE_PROMPT.format(description=description),
                n=1,
                size="1024x1024",
                quality="standard",
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI image generation error: {e}")
            raise self._translate_error(e) from e

        image_url = response.data[0].url if response.data else None
        if not image_url:
            raise RuntimeError("OpenAI returned no image URL")

        logger.info("Successfully generated stylized image")
        return image_url

    async def _describe_drawing(self, png_bytes: bytes) -> str:
        encoded = base64.b64encode(png_bytes).decode("utf-8")
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": DESCRIBE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "What's drawn in this simple sketch?"},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/png;base64,{encoded}"},
                        },
                    ],
                },
            ],
        )
        return response.choices[0].message.content or "a simple sketch"


class OpenAIEmotionAnalyzer(OpenAIBackend, EmotionAnalyzer):
    """Extracts mood and dominant emotions from an image URL."""

    async def analyze(self, image_url: str) -> EmotionAnalysis:
        """Analyze an image for its emotional content.

        Args:
            image_url: Publicly reachable image URL

        Returns:
            EmotionAnalysis with description and dominant emotions

        Raises:
            RuntimeError: If the call fails or the response is malformed
            ConnectionError: If the API key is rejected
        """
        logger.info(f"Analyzing image: {image_url[:80]}")
        try:
            result = await self._complete_json([
                {"role": "system", "content": ANALYZE_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Analyze this image for its emotional content and mood."},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                },
            ])
        except openai.OpenAIError as e:
            logger.error(f"OpenAI image analysis error: {e}")
            raise self._translate_error(e) from e

        try:
            return EmotionAnalysis(
                description=result.get("description") or NO_DESCRIPTION,
                dominant_emotions=result.get("dominantEmotions") or [],
            )
        except ValidationError as e:
            raise RuntimeError(f"Malformed emotion analysis: {e}") from e


class OpenAIAttributeExtractor(OpenAIBackend, AttributeExtractor):
    """Turns an emotional description into musical attributes."""

    async def extract_attributes(self, emotional_description: str) -> List[MusicAttribute]:
        try:
            result = await self._complete_json([
                {"role": "system", "content": ATTRIBUTES_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Create musical attributes based on this emotional description: "
                        f"{emotional_description}"
                    ),
                },
            ])
        except openai.OpenAIError as e:
            logger.error(f"OpenAI attribute extraction error: {e}")
            raise self._translate_error(e) from e

        try:
            return [MusicAttribute.model_validate(item) for item in result.get("attributes") or []]
        except ValidationError as e:
            raise RuntimeError(f"Malformed musical attributes: {e}") from e
