"""Freehand stroke rendering onto an RGBA raster surface."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from PIL import Image, ImageColor, ImageDraw

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

TRANSPARENT = (0, 0, 0, 0)


class Tool(str, Enum):
    """Available drawing tools."""
    BRUSH = "brush"
    ERASER = "eraser"


def parse_color(color: str) -> RGB:
    """Parse a CSS color string (``#rrggbb``, ``rgb(...)``, names) to RGB.

    Raises:
        ValueError: If the string is not a recognized color
    """
    parsed = ImageColor.getrgb(color.strip())
    return parsed[:3]


@dataclass
class ToolState:
    """Current tool selection.

    Attributes:
        tool: Brush or eraser
        width: Stroke width in pixels (MIN_WIDTH-MAX_WIDTH)
        color: Stroke color as an RGB tuple
    """
    tool: Tool = Tool.BRUSH
    width: int = 5
    color: RGB = (0, 0, 0)

    MIN_WIDTH = 1
    MAX_WIDTH = 50

    def __post_init__(self):
        self.tool = Tool(self.tool)
        self.width = self.validate_width(self.width)

    @classmethod
    def validate_width(cls, width: int) -> int:
        width = int(width)
        if not cls.MIN_WIDTH <= width <= cls.MAX_WIDTH:
            raise ValueError(
                f"Brush width must be between {cls.MIN_WIDTH} and {cls.MAX_WIDTH}, got {width}"
            )
        return width


class StrokeRenderer:
    """Draws line segments with round caps and joins onto a surface.

    Each segment is rasterized into a binary coverage mask (a line plus a
    disc of the stroke width at both ends), then applied to the surface:

    - brush: covered pixels take the opaque stroke color (source-over)
    - eraser: covered pixels become fully transparent (destination-out)

    Attributes:
        surface: The RGBA image being drawn on, or None if unavailable
    """

    def __init__(self, surface: Optional[Image.Image]):
        self.surface = surface

    def draw_segment(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        tool_state: ToolState
    ) -> bool:
        """Render one segment of a stroke.

        Args:
            x1, y1: Segment start in surface pixels
            x2, y2: Segment end in surface pixels
            tool_state: Tool, width and color to draw with

        Returns:
            True if the segment touched the surface, False otherwise
        """
        if self.surface is None:
            return False

        box = self._segment_box(x1, y1, x2, y2, tool_state.width)
        if box is None:
            return False

        left, top, right, bottom = box
        mask = self._coverage_mask(
            (x1 - left, y1 - top),
            (x2 - left, y2 - top),
            (right - left, bottom - top),
            tool_state.width
        )

        if tool_state.tool == Tool.ERASER:
            fill = TRANSPARENT
        else:
            fill = (*tool_state.color, 255)

        self.surface.paste(fill, box, mask)
        return True

    def _segment_box(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        width: int
    ) -> Optional[Tuple[int, int, int, int]]:
        """Bounding box of a segment's coverage, clipped to the surface."""
        pad = width / 2 + 1
        left = max(0, math.floor(min(x1, x2) - pad))
        top = max(0, math.floor(min(y1, y2) - pad))
        right = min(self.surface.width, math.ceil(max(x1, x2) + pad))
        bottom = min(self.surface.height, math.ceil(max(y1, y2) + pad))

        if left >= right or top >= bottom:
            return None
        return left, top, right, bottom

    @staticmethod
    def _coverage_mask(
        start: Tuple[float, float],
        end: Tuple[float, float],
        size: Tuple[int, int],
        width: int
    ) -> Image.Image:
        mask = Image.new("1", size, 0)
        draw = ImageDraw.Draw(mask)
        draw.line([start, end], fill=1, width=width)

        # Round caps
        radius = width / 2
        for cx, cy in (start, end):
            draw.ellipse(
                [cx - radius, cy - radius, cx + radius, cy + radius],
                fill=1
            )
        return mask
