"""Replicate API backend for sketch stylization (image-to-image)."""

import asyncio
import base64
import binascii
import logging
from typing import Optional
import replicate
from replicate.exceptions import ReplicateError

from sketchmix.core.base_backend import ImageStylizer
from sketchmix.utils.image_utils import prepare_drawing_for_upload, strip_data_uri_prefix

logger = logging.getLogger(__name__)


STYLE_PROMPT = (
    "A vibrant, professional artistic rendition of this sketch. Colorful, animated "
    "style with clean lines, dynamic and polished, staying true to the original "
    "concept and bringing out its emotions."
)


class ReplicateStylizer(ImageStylizer):
    """Stylizes sketches with an image-to-image model on Replicate.

    Attributes:
        api_key: Replicate API token
        model: The model identifier to run
        strength: How far the output may depart from the sketch (0-1)
        client: Replicate client instance
    """

    DEFAULT_MODEL = "black-forest-labs/flux-dev"

    def __init__(self, api_key: str, model: Optional[str] = None, strength: float = 0.8):
        """Initialize the Replicate backend.

        Args:
            api_key: Replicate API token
            model: Optional model identifier (defaults to FLUX.1-dev)
            strength: Transformation strength

        Raises:
            ValueError: If API key is empty
        """
        super().__init__(api_key)

        if not api_key:
            raise ValueError("Replicate API key is required")

        self.model = model or self.DEFAULT_MODEL
        self.strength = strength
        self.client = replicate.Client(api_token=api_key)
        logger.info(f"Initialized Replicate stylizer with model: {self.model}")

    async def stylize(self, drawing_data: str) -> str:
        """Run image-to-image on the drawing.

        Returns:
            URL of the generated image

        Raises:
            RuntimeError: If the drawing is invalid or generation fails
            ConnectionError: If the API token is rejected
        """
        try:
            raw = base64.b64decode(strip_data_uri_prefix(drawing_data))
            processed = prepare_drawing_for_upload(raw)
        except (binascii.Error, ValueError, OSError) as e:
            raise RuntimeError(f"Drawing could not be processed: {e}") from e

        input_params = {
            "prompt": STYLE_PROMPT,
            "image": f"data:image/png;base64,{base64.b64encode(processed).decode('utf-8')}",
        }

        # SDXL-family models call it prompt_strength, FLUX calls it strength
        if "sdxl" in self.model.lower() or "stability-ai" in self.model.lower():
            input_params["prompt_strength"] = self.strength
        else:
            input_params["strength"] = self.strength

        try:
            logger.debug(f"Calling Replicate API with params: {list(input_params.keys())}")
            output = await self.client.async_run(self.model, input=input_params)
        except ReplicateError as e:
            logger.error(f"Replicate API error: {e}")
            error_msg = str(e).lower()

            if "authentication" in error_msg or "unauthorized" in error_msg:
                raise ConnectionError(
                    "Invalid Replicate API token. Please check your REPLICATE_TOKEN."
                ) from e
            elif "rate limit" in error_msg:
                raise RuntimeError("Rate limit exceeded. Please try again later.") from e
            raise RuntimeError(f"Replicate API error: {e}") from e

        # Replicate returns either a single output or a list of outputs
        if isinstance(output, list):
            output = output[0] if output else None
        if not output:
            raise RuntimeError("Replicate returned no image")

        image_url = str(getattr(output, "url", output))
        logger.info(f"Successfully stylized drawing: {image_url[:80]}")
        return image_url

    async def health_check(self) -> bool:
        try:
            logger.debug("Performing health check...")
            # Listing models verifies the token and connectivity
            models_iter = await asyncio.to_thread(self.client.models.list)
            next(iter(models_iter))
            logger.debug("Health check passed")
            return True
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return False

    @property
    def name(self) -> str:
        return "Replicate"
