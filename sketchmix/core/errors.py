"""Exception types raised by the drawing and generation layers."""


class EmptyDrawingError(ValueError):
    """Raised when a drawing contains no visible pixels."""


class StageError(RuntimeError):
    """A generation stage failed and the pipeline was aborted.

    Attributes:
        stage: Name of the stage that failed ("stylize", "analyze", "music")
        label: Short user-facing category prefixed to the message
    """

    stage = "pipeline"
    label = "Generation failed"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.label}: {detail}")


class ImageGenerationError(StageError):
    stage = "stylize"
    label = "Failed to generate image"


class ImageAnalysisError(StageError):
    stage = "analyze"
    label = "Failed to analyze image"


class MusicGenerationError(StageError):
    stage = "music"
    label = "Failed to generate music"


class CompositionError(RuntimeError):
    """The remote music composition service could not produce a track."""


class CompositionFailedError(CompositionError):
    """The composition task reported a failed status."""


class CompositionTimeoutError(CompositionError):
    """The composition task did not finish within the polling budget."""


class PipelineCancelledError(RuntimeError):
    """The caller cancelled a pipeline run before it completed."""


class StorageError(RuntimeError):
    """Reading or writing creations failed."""
