"""Unit tests for DrawingSession."""

import pytest

from sketchmix.drawing.renderer import Tool
from sketchmix.drawing.session import DrawingSession, DrawingState


@pytest.fixture
def session():
    return DrawingSession(width=100, height=100, max_history=10)


def draw_line(session, start, end):
    session.start_stroke(*start)
    session.move_to(*end)
    session.end_stroke()


class TestDrawingSession:
    """Tests for DrawingSession."""

    def test_initial_state(self, session):
        assert session.state == DrawingState.IDLE
        assert session.is_empty()
        assert session.surface.size == (100, 100)
        assert session.history.get_count() == 0
        assert not session.can_undo
        assert not session.can_redo

    def test_start_stroke_takes_pre_stroke_snapshot(self, session):
        assert session.start_stroke(10, 10) is True

        assert session.is_drawing
        assert session.history.get_count() == 1
        # Entry 0 is blank because the session began blank
        session.move_to(90, 90)
        session.end_stroke()
        session.start_stroke(0, 0)
        session.end_stroke()
        session.undo()
        assert session.is_empty()

    def test_overlapping_stroke_is_ignored(self, session):
        session.start_stroke(10, 10)

        assert session.start_stroke(50, 50) is False
        assert session.history.get_count() == 1

    def test_move_without_stroke_draws_nothing(self, session):
        assert session.move_to(50, 50) is False
        assert session.is_empty()

    def test_move_draws_segment(self, session):
        session.start_stroke(10, 50)

        assert session.move_to(90, 50) is True
        assert not session.is_empty()

    def test_end_stroke_returns_to_idle(self, session):
        session.start_stroke(10, 10)
        session.end_stroke()

        assert session.state == DrawingState.IDLE
        assert session.move_to(20, 20) is False

    def test_undo_redo_between_strokes(self, session):
        draw_line(session, (10, 10), (90, 10))
        draw_line(session, (10, 90), (90, 90))

        assert session.can_undo
        assert session.undo() is True
        # Snapshots are pre-stroke, so one undo steps back to entry 0 (blank)
        assert session.is_empty()

        assert session.redo() is True
        assert session.surface.getpixel((50, 10))[3] == 255
        assert session.surface.getpixel((50, 90))[3] == 0
        assert not session.can_redo

    def test_undo_ignored_while_drawing(self, session):
        draw_line(session, (10, 10), (90, 10))
        session.start_stroke(10, 90)

        assert session.undo() is False
        assert session.redo() is False

    def test_clear_resets_surface_and_records_history(self, session):
        draw_line(session, (10, 10), (90, 90))
        count = session.history.get_count()

        session.clear()

        assert session.is_empty()
        assert session.history.get_count() == count + 1
        assert session.can_undo

    def test_clear_ends_stroke(self, session):
        session.start_stroke(10, 10)
        session.clear()

        assert not session.is_drawing

    def test_set_tool(self, session):
        session.set_tool("eraser")
        assert session.tool_state.tool == Tool.ERASER

        session.set_tool(Tool.BRUSH)
        assert session.tool_state.tool == Tool.BRUSH

    def test_set_brush_size(self, session):
        session.set_brush_size(20)
        assert session.tool_state.width == 20

        with pytest.raises(ValueError):
            session.set_brush_size(51)
        assert session.tool_state.width == 20

    def test_set_color(self, session):
        session.set_color("#00ff00")
        assert session.tool_state.color == (0, 255, 0)

        session.set_color((1, 2, 3, 4))
        assert session.tool_state.color == (1, 2, 3)

    def test_eraser_stroke(self, session):
        draw_line(session, (10, 50), (90, 50))
        session.set_tool(Tool.ERASER)
        session.set_brush_size(50)

        draw_line(session, (0, 50), (100, 50))

        assert session.is_empty()

    def test_to_data_url(self, session):
        assert session.to_data_url().startswith("data:image/png;base64,")

    def test_preview_is_white_backed(self, session):
        preview = session.preview()

        assert preview.mode == "RGB"
        assert preview.getpixel((0, 0)) == (255, 255, 255)

    def test_repr(self, session):
        assert "DrawingSession" in repr(session)
