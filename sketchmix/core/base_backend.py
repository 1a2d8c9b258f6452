"""Abstract interfaces for the remote services used by the pipeline."""

from abc import ABC, abstractmethod
from typing import List, Optional

from sketchmix.core.models import EmotionAnalysis, MusicAttribute


class BaseBackend(ABC):
    """Common contract shared by every provider adapter.

    Attributes:
        api_key: API key for the provider
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is reachable with the configured credentials.

        Returns:
            True if the backend is healthy, False otherwise
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name (e.g. "OpenAI", "Beatoven")."""

    async def aclose(self) -> None:
        """Release network resources held by the backend."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class ImageStylizer(BaseBackend):
    """Stage 1: turns a sketch into a stylized image."""

    @abstractmethod
    async def stylize(self, drawing_data: str) -> str:
        """Generate an artistic image from a drawing.

        Args:
            drawing_data: Base64 PNG, with or without a data-URI prefix

        Returns:
            URL of the generated image

        Raises:
            RuntimeError: If generation fails
            ConnectionError: If the provider rejects the credentials
        """


class EmotionAnalyzer(BaseBackend):
    """Stage 2: reads the emotional content of an image."""

    @abstractmethod
    async def analyze(self, image_url: str) -> EmotionAnalysis:
        """Analyze an image for mood and dominant emotions.

        Raises:
            RuntimeError: If analysis fails
            ConnectionError: If the provider rejects the credentials
        """


class AttributeExtractor(BaseBackend):
    """Derives named musical attributes from an emotional description."""

    @abstractmethod
    async def extract_attributes(self, emotional_description: str) -> List[MusicAttribute]:
        """Translate emotions into musical attributes.

        Raises:
            RuntimeError: If the provider call fails
        """


class MusicComposer(BaseBackend):
    """Stage 3 primary path: composes an original track."""

    @abstractmethod
    async def compose(self, emotional_description: str) -> str:
        """Compose a track matching an emotional description.

        Returns:
            URL of the finished track

        Raises:
            CompositionError: If the task fails or times out
            RuntimeError: If the service cannot be reached
        """
