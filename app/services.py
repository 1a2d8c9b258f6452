"""Wiring of backends, pipeline and storage from settings."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from app.config import Settings
from sketchmix.backends.beatoven import BeatovenComposer
from sketchmix.backends.openai import OpenAIAttributeExtractor, OpenAIEmotionAnalyzer
from sketchmix.core.backend_factory import BackendFactory
from sketchmix.core.base_backend import BaseBackend
from sketchmix.core.music_generator import MusicGenerator
from sketchmix.core.pipeline import GenerationPipeline
from sketchmix.storage.creations import CreationRepository
from sketchmix.utils.health import HealthChecker, Probe

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the HTTP routes and the UI need.

    Attributes:
        pipeline: The generation pipeline
        creations: Saved-creation store
        health: Health checker covering backends and database
        backends: Backend instances to close on shutdown
    """
    pipeline: GenerationPipeline
    creations: CreationRepository
    health: HealthChecker
    backends: List[BaseBackend] = field(default_factory=list)

    async def aclose(self) -> None:
        for backend in self.backends:
            try:
                await backend.aclose()
            except Exception as e:
                logger.warning(f"Failed to close {backend.name}: {e}")


def create_services(settings: Settings) -> Services:
    """Build the pipeline and storage from configuration.

    Raises:
        ValueError: If required configuration is missing
    """
    try:
        settings.validate_required_keys()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    if settings.stylizer_backend == "replicate":
        stylizer = BackendFactory.create_stylizer(
            "replicate",
            settings.replicate_token,
            model=settings.replicate_model,
        )
    else:
        stylizer = BackendFactory.create_stylizer(
            "openai",
            settings.openai_api_key,
            model=settings.openai_chat_model,
            image_model=settings.openai_image_model,
            timeout=settings.request_timeout,
        )

    analyzer = OpenAIEmotionAnalyzer(
        settings.openai_api_key,
        model=settings.openai_chat_model,
        timeout=settings.request_timeout,
    )
    attribute_extractor = OpenAIAttributeExtractor(
        settings.openai_api_key,
        model=settings.openai_chat_model,
        client=analyzer.client,
    )
    composer = BeatovenComposer(
        settings.beatoven_api_key,
        base_url=settings.beatoven_base_url,
        poll_interval=settings.music_poll_interval,
        max_attempts=settings.music_max_poll_attempts,
    )

    music_generator = MusicGenerator(
        composer,
        attribute_extractor,
        composition_timeout=settings.music_timeout,
    )
    pipeline = GenerationPipeline(
        stylizer,
        analyzer,
        music_generator,
        stylize_timeout=settings.stylize_timeout,
        analyze_timeout=settings.analyze_timeout,
    )

    creations = CreationRepository.from_url(settings.database_url)

    async def database_ping() -> bool:
        return await asyncio.to_thread(creations.ping)

    health = HealthChecker([
        Probe("database", database_ping),
        Probe(stylizer.name.lower(), stylizer.health_check),
        Probe("beatoven", composer.health_check, critical=False),
    ])

    logger.info(
        f"Services ready: stylizer={stylizer.name}, analyzer={analyzer.name}, "
        f"composer={composer.name}"
    )
    return Services(
        pipeline=pipeline,
        creations=creations,
        health=health,
        backends=[stylizer, analyzer, composer],
    )
