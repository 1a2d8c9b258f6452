"""Music stage orchestration: remote composition with a sample-track fallback."""

import asyncio
import logging
from typing import List, Optional, Tuple

from sketchmix.core.base_backend import AttributeExtractor, MusicComposer
from sketchmix.core.models import MusicAttribute, MusicResult
from sketchmix.utils.mood import select_sample_track

logger = logging.getLogger(__name__)


class MusicGenerator:
    """Produces a track and musical attributes for an emotional description.

    The composer is tried first. If it fails for any reason (unreachable,
    failed task, polling timeout, composition_timeout) a sample track is
    chosen from the description instead, so this stage never fails.
    Attribute extraction runs concurrently and degrades to an empty list.

    Attributes:
        composer: Primary composition backend, or None to always use samples
        attribute_extractor: Backend deriving musical attributes, or None
        composition_timeout: Upper bound in seconds on the primary path
    """

    def __init__(
        self,
        composer: Optional[MusicComposer],
        attribute_extractor: Optional[AttributeExtractor] = None,
        composition_timeout: Optional[float] = None
    ):
        self.composer = composer
        self.attribute_extractor = attribute_extractor
        self.composition_timeout = composition_timeout

        logger.info(
            f"Initialized MusicGenerator with composer: "
            f"{composer.name if composer else 'none'}, timeout: {composition_timeout}"
        )

    async def generate(self, emotional_description: str) -> MusicResult:
        """Generate music for an emotional description.

        Args:
            emotional_description: Free text from the analysis stage

        Returns:
            MusicResult with the track URL, attributes and source
        """
        (music_url, source), attributes = await asyncio.gather(
            self._compose_with_fallback(emotional_description),
            self._extract_attributes(emotional_description),
        )
        return MusicResult(music_url=music_url, attributes=attributes, source=source)

    async def _compose_with_fallback(self, emotional_description: str) -> Tuple[str, str]:
        if self.composer is not None:
            try:
                logger.info(f"Attempting composition with {self.composer.name}")
                music_url = await asyncio.wait_for(
                    self.composer.compose(emotional_description),
                    timeout=self.composition_timeout,
                )
                logger.info(f"Composition successful with {self.composer.name}")
                return music_url, "composed"
            except asyncio.TimeoutError:
                logger.warning(
                    f"Composition exceeded {self.composition_timeout}s, falling back to sample music"
                )
            except Exception as e:
                logger.warning(f"Composer {self.composer.name} failed: {e}, falling back to sample music")

        track = select_sample_track(emotional_description)
        logger.info(f"Using sample track '{track.name}'")
        return track.url, "fallback"

    async def _extract_attributes(self, emotional_description: str) -> List[MusicAttribute]:
        if self.attribute_extractor is None:
            return []

        try:
            return await self.attribute_extractor.extract_attributes(emotional_description)
        except Exception as e:
            logger.warning(f"Attribute extraction failed: {e}")
            return []
