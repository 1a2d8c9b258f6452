"""Drawing session state machine tying together surface, tools and history."""

import logging
from enum import Enum
from typing import Optional, Tuple, Union
from PIL import Image

from sketchmix.drawing.history import HistoryStack
from sketchmix.drawing.renderer import RGB, StrokeRenderer, Tool, ToolState, parse_color
from sketchmix.utils.image_utils import flatten_on_white, is_surface_empty, surface_to_data_url

logger = logging.getLogger(__name__)


class DrawingState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class DrawingSession:
    """One user's canvas.

    Pointer events enter through ``start_stroke``, ``move_to`` and
    ``end_stroke``; everything else is an explicit user action. Only one
    stroke can be in progress at a time: a second ``start_stroke`` while
    drawing is ignored.

    Attributes:
        surface: The RGBA raster being drawn on
        tool_state: Current tool, width and color
        history: Undo/redo snapshots of the surface
        state: IDLE or DRAWING
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        max_history: Optional[int] = 50
    ):
        self.surface = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self.tool_state = ToolState()
        self.renderer = StrokeRenderer(self.surface)
        self.history = HistoryStack(self.surface, max_entries=max_history)
        self.state = DrawingState.IDLE
        self._last_position: Optional[Tuple[float, float]] = None

    @property
    def is_drawing(self) -> bool:
        return self.state == DrawingState.DRAWING

    def start_stroke(self, x: float, y: float) -> bool:
        """Put the pen down.

        Takes the pre-stroke snapshot before any pixel of the stroke is drawn.

        Returns:
            False if a stroke was already in progress
        """
        if self.is_drawing:
            logger.debug("Ignoring stroke start while a stroke is in progress")
            return False

        self.state = DrawingState.DRAWING
        self._last_position = (x, y)
        self.history.snapshot()
        return True

    def move_to(self, x: float, y: float) -> bool:
        """Extend the current stroke to a new pointer position.

        Returns:
            True if a segment was drawn
        """
        if not self.is_drawing or self._last_position is None:
            return False

        last_x, last_y = self._last_position
        drawn = self.renderer.draw_segment(last_x, last_y, x, y, self.tool_state)
        self._last_position = (x, y)
        return drawn

    def end_stroke(self) -> None:
        """Lift the pen."""
        if self.is_drawing:
            self.state = DrawingState.IDLE
            self._last_position = None

    def clear(self) -> None:
        """Erase the whole surface and record the blank state in history."""
        self.end_stroke()
        self.surface.paste((0, 0, 0, 0), (0, 0, *self.surface.size))
        self.history.snapshot()

    def undo(self) -> bool:
        if self.is_drawing:
            return False
        return self.history.undo()

    def redo(self) -> bool:
        if self.is_drawing:
            return False
        return self.history.redo()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def set_tool(self, tool: Union[Tool, str]) -> None:
        self.tool_state.tool = Tool(tool)

    def set_brush_size(self, width: int) -> None:
        """Change the stroke width.

        Raises:
            ValueError: If width is outside 1-50
        """
        self.tool_state.width = ToolState.validate_width(width)

    def set_color(self, color: Union[RGB, str]) -> None:
        """Change the brush color from an RGB tuple or a CSS color string."""
        if isinstance(color, str):
            color = parse_color(color)
        self.tool_state.color = tuple(color)[:3]

    def is_empty(self) -> bool:
        return is_surface_empty(self.surface)

    def to_data_url(self) -> str:
        """Serialize the surface as a PNG data URI for the pipeline."""
        return surface_to_data_url(self.surface)

    def preview(self) -> Image.Image:
        """The surface composited on white, for display."""
        return flatten_on_white(self.surface).convert("RGB")

    def __repr__(self) -> str:
        return (
            f"DrawingSession(size={self.surface.size}, state={self.state.value}, "
            f"tool={self.tool_state.tool.value}, history={self.history!r})"
        )
