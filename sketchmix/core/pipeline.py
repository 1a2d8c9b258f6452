"""Generation pipeline: stylize → analyze → compose, with cancellation support."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Tuple, Type
from PIL import Image

from sketchmix.core.base_backend import EmotionAnalyzer, ImageStylizer
from sketchmix.core.errors import (
    EmptyDrawingError,
    ImageAnalysisError,
    ImageGenerationError,
    MusicGenerationError,
    PipelineCancelledError,
    StageError,
)
from sketchmix.core.models import EmotionAnalysis, MusicResult, PipelineResult
from sketchmix.core.music_generator import MusicGenerator
from sketchmix.utils.image_utils import is_surface_empty, surface_to_data_url

logger = logging.getLogger(__name__)


STYLIZE = "stylize"
ANALYZE = "analyze"
MUSIC = "music"


@dataclass(frozen=True)
class Stage:
    """One step of the pipeline.

    Attributes:
        name: Stage identifier
        run: Coroutine function taking the previous stage's output
    """
    name: str
    run: Callable[[Any], Awaitable[Any]]


class GenerationPipeline:
    """Runs the three generation stages strictly in sequence.

    Each stage receives only the previous stage's output. Errors in the
    stylize and analyze stages abort the run with a stage-labeled message;
    the music stage falls back to sample tracks instead of failing.

    The pipeline holds no per-run state, so one instance can serve any number
    of concurrent runs.

    Attributes:
        stylizer: Stage 1 backend
        analyzer: Stage 2 backend
        music_generator: Stage 3 orchestrator
        stylize_timeout: Seconds allowed for stage 1 (None = unbounded)
        analyze_timeout: Seconds allowed for stage 2 (None = unbounded)
    """

    def __init__(
        self,
        stylizer: ImageStylizer,
        analyzer: EmotionAnalyzer,
        music_generator: MusicGenerator,
        stylize_timeout: Optional[float] = None,
        analyze_timeout: Optional[float] = None
    ):
        self.stylizer = stylizer
        self.analyzer = analyzer
        self.music_generator = music_generator
        self.stylize_timeout = stylize_timeout
        self.analyze_timeout = analyze_timeout

        self.stages: List[Stage] = [
            Stage(STYLIZE, self.generate_image),
            Stage(ANALYZE, self.analyze_image),
            Stage(MUSIC, lambda analysis: self.generate_music(analysis.description)),
        ]

        logger.info(
            f"Initialized GenerationPipeline with stylizer: {stylizer.name}, "
            f"analyzer: {analyzer.name}"
        )

    async def generate_image(self, drawing_data: str) -> str:
        """Stage 1: stylize a drawing.

        Raises:
            ImageGenerationError: On any provider error or timeout
        """
        return await self._guard(
            ImageGenerationError,
            self.stylizer.stylize(drawing_data),
            self.stylize_timeout,
        )

    async def analyze_image(self, image_url: str) -> EmotionAnalysis:
        """Stage 2: read the emotional content of the stylized image.

        Raises:
            ImageAnalysisError: On any provider error or timeout
        """
        return await self._guard(
            ImageAnalysisError,
            self.analyzer.analyze(image_url),
            self.analyze_timeout,
        )

    async def generate_music(self, emotional_description: str) -> MusicResult:
        """Stage 3: compose or select music for an emotional description.

        Raises:
            MusicGenerationError: Only on unexpected internal errors
        """
        return await self._guard(
            MusicGenerationError,
            self.music_generator.generate(emotional_description),
            None,
        )

    async def stream(self, drawing_data: str) -> AsyncIterator[Tuple[str, Any]]:
        """Run every stage in order, yielding (stage name, output) after each.

        Raises:
            StageError: From the first stage that fails
        """
        value: Any = drawing_data
        for stage in self.stages:
            logger.info(f"Pipeline stage '{stage.name}' starting")
            value = await stage.run(value)
            logger.info(f"Pipeline stage '{stage.name}' complete")
            yield stage.name, value

    async def run(self, drawing_data: str) -> PipelineResult:
        """Run the full pipeline and return its combined result.

        Raises:
            StageError: From the first stage that fails
        """
        outputs = {}
        async for name, value in self.stream(drawing_data):
            outputs[name] = value

        return PipelineResult(
            image_url=outputs[STYLIZE],
            analysis=outputs[ANALYZE],
            music=outputs[MUSIC],
        )

    async def run_surface(self, surface: Optional[Image.Image]) -> PipelineResult:
        """Run the pipeline on a raster surface, refusing empty drawings.

        Raises:
            EmptyDrawingError: If the surface has no non-zero pixel
            StageError: From the first stage that fails
        """
        if is_surface_empty(surface):
            raise EmptyDrawingError("Please draw something on the canvas first!")
        return await self.run(surface_to_data_url(surface))

    def start(self, drawing_data: str) -> "PipelineRun":
        """Start a run as a background task and return a cancellable handle.

        Must be called from within a running event loop.
        """
        task = asyncio.create_task(self.run(drawing_data))
        return PipelineRun(task)

    @staticmethod
    async def _guard(
        error_class: Type[StageError],
        operation: Awaitable[Any],
        timeout: Optional[float]
    ) -> Any:
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except StageError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"{error_class.label}: timed out after {timeout}s")
            raise error_class(f"timed out after {timeout}s") from e
        except Exception as e:
            logger.error(f"{error_class.label}: {e}")
            raise error_class(str(e)) from e


class PipelineRun:
    """Handle on a pipeline run executing as an asyncio task.

    Cancelling stops waiting for results; stages that have not started yet
    never start. Work already submitted to a provider is not recalled.
    """

    def __init__(self, task: "asyncio.Task[PipelineResult]"):
        self._task = task
        self._cancel_requested = False

    def cancel(self) -> bool:
        """Request cancellation. Returns False if the run already finished."""
        if self._task.done():
            return False
        logger.info("Cancelling pipeline run")
        self._cancel_requested = True
        return self._task.cancel()

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    async def result(self) -> PipelineResult:
        """Wait for the run to finish.

        Raises:
            PipelineCancelledError: If the run was cancelled through cancel()
            StageError: If a stage failed
        """
        try:
            return await self._task
        except asyncio.CancelledError:
            # Only a cancel() on this run is reported as a cancelled generation
            if self._cancel_requested and self._task.cancelled():
                raise PipelineCancelledError("Generation was cancelled") from None
            raise
