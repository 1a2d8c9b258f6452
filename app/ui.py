"""Gradio drawing UI: canvas, tools, streaming generation and gallery."""

import logging
from typing import Callable, List, Optional, Tuple

import gradio as gr

from app.services import Services
from sketchmix.core.errors import StageError, StorageError
from sketchmix.core.models import CreationCreate, CreationRecord, EmotionAnalysis, MusicAttribute
from sketchmix.core.pipeline import ANALYZE, MUSIC, STYLIZE
from sketchmix.drawing.renderer import Tool, ToolState
from sketchmix.drawing.session import DrawingSession

logger = logging.getLogger(__name__)

EMPTY_CANVAS_MESSAGE = "Please draw something on the canvas first!"

STAGE_PROGRESS = {
    STYLIZE: "🎨 Artwork ready. Analyzing emotions...",
    ANALYZE: "💭 Emotions analyzed. Composing music...",
    MUSIC: "✅ Your creation is ready!",
}


def format_emotions(analysis: Optional[EmotionAnalysis]) -> str:
    """Render an emotion analysis as markdown."""
    if analysis is None:
        return ""

    lines = [f"**{analysis.description}**", ""]
    for emotion in analysis.dominant_emotions:
        lines.append(f"- {emotion.name}: {emotion.percentage:.0f}%")
    return "\n".join(lines)


def format_attributes(attributes: List[MusicAttribute]) -> str:
    if not attributes:
        return "_No musical attributes available_"
    return "\n".join(
        f"- **{attr.name}**: {attr.value} ({attr.percentage:.0f}%)" for attr in attributes
    )


def format_history_status(session: DrawingSession) -> str:
    count = session.history.get_count()
    pen = "down" if session.is_drawing else "up"
    return f"✏️ Pen {pen} · {count} snapshot{'s' if count != 1 else ''}"


def canvas_outputs(session: DrawingSession) -> Tuple:
    """Values for (session state, canvas, undo button, redo button, status)."""
    return (
        session,
        session.preview(),
        gr.update(interactive=session.can_undo),
        gr.update(interactive=session.can_redo),
        format_history_status(session),
    )


def handle_canvas_click(session: DrawingSession, x: float, y: float) -> DrawingSession:
    """First click puts the pen down and draws a dot, later clicks extend the stroke."""
    if not session.is_drawing:
        session.start_stroke(x, y)
    session.move_to(x, y)
    return session


def gallery_items(records: List[CreationRecord]) -> List[Tuple[str, str]]:
    return [
        (record.generated_image, record.emotional_analysis.description)
        for record in records
    ]


def describe_creation(record: CreationRecord) -> str:
    return f"### Creation #{record.id}\n\n{format_emotions(record.emotional_analysis)}"


def create_ui(
    services: Services,
    session_factory: Callable[[], DrawingSession] = DrawingSession
) -> gr.Blocks:
    """Create the Gradio interface.

    Args:
        services: Pipeline and storage used by the Generate, Save and Gallery actions
        session_factory: Creates a fresh canvas for each browser session

    Returns:
        Gradio Blocks interface
    """

    def ensure_session(session: Optional[DrawingSession]) -> DrawingSession:
        return session if session is not None else session_factory()

    def load_canvas(session):
        return canvas_outputs(ensure_session(session))

    def on_canvas_select(session, evt: gr.SelectData):
        session = ensure_session(session)
        x, y = evt.index
        handle_canvas_click(session, x, y)
        return canvas_outputs(session)

    def on_lift_pen(session):
        session = ensure_session(session)
        session.end_stroke()
        return canvas_outputs(session)

    def on_undo(session):
        session = ensure_session(session)
        session.undo()
        return canvas_outputs(session)

    def on_redo(session):
        session = ensure_session(session)
        session.redo()
        return canvas_outputs(session)

    def on_clear(session):
        session = ensure_session(session)
        session.clear()
        return canvas_outputs(session)

    def on_tool_change(session, tool: str):
        session = ensure_session(session)
        session.set_tool(Tool(tool))
        return session

    def on_size_change(session, width: float):
        session = ensure_session(session)
        try:
            session.set_brush_size(int(width))
        except ValueError as e:
            gr.Warning(str(e))
        return session

    def on_color_change(session, color: str):
        session = ensure_session(session)
        try:
            session.set_color(color)
        except ValueError:
            gr.Warning(f"Unrecognized color: {color}")
        return session

    async def on_generate(session):
        """Stream each stage's output into the results panel as it completes."""
        session = ensure_session(session)
        session.end_stroke()

        if session.is_empty():
            gr.Warning(EMPTY_CANVAS_MESSAGE)
            yield (
                gr.update(), gr.update(), gr.update(), gr.update(),
                f"⚠️ {EMPTY_CANVAS_MESSAGE}", None, gr.update(interactive=False),
            )
            return

        drawing_data = session.to_data_url()
        image_url = None
        analysis = None
        yield (
            None, "", None, "", "🎨 Transforming your drawing...", None,
            gr.update(interactive=False),
        )

        try:
            async for stage, value in services.pipeline.stream(drawing_data):
                status = STAGE_PROGRESS[stage]
                if stage == STYLIZE:
                    image_url = value
                    yield (image_url, "", None, "", status, None, gr.update(interactive=False))
                elif stage == ANALYZE:
                    analysis = value
                    yield (
                        image_url, format_emotions(analysis), None, "", status, None,
                        gr.update(interactive=False),
                    )
                else:
                    creation = {
                        "drawing_data": drawing_data,
                        "generated_image": image_url,
                        "emotional_analysis": analysis,
                        "music_url": value.music_url,
                    }
                    if value.source == "fallback":
                        status += " (using a sample track)"
                    yield (
                        image_url, format_emotions(analysis), value.music_url,
                        format_attributes(value.attributes), status, creation,
                        gr.update(interactive=True),
                    )
        except StageError as e:
            logger.error(f"Generation failed: {e}")
            yield (
                gr.update(), gr.update(), gr.update(), gr.update(),
                f"❌ {e}", None, gr.update(interactive=False),
            )

    def on_save(creation):
        if not creation:
            return "⚠️ Generate something before saving"
        try:
            record = services.creations.create(CreationCreate(**creation))
        except StorageError as e:
            logger.error(f"Save failed: {e}")
            return f"❌ {e}"
        return f"💾 Saved as creation #{record.id}"

    def load_gallery():
        try:
            records = services.creations.list_all()
        except StorageError as e:
            logger.error(f"Could not load gallery: {e}")
            return [], [], f"❌ {e}"
        count = len(records)
        return (
            gallery_items(records),
            records,
            f"🖼️ Gallery: {count} creation{'s' if count != 1 else ''}",
        )

    def on_gallery_select(records, evt: gr.SelectData):
        if not records or evt.index >= len(records):
            return "", None
        record = records[evt.index]
        return describe_creation(record), record.music_url

    with gr.Blocks(title="SketchMix") as demo:
        gr.Markdown(
            """
            # 🎨 SketchMix

            Draw something, then let AI turn it into artwork, read its mood and compose music for it.
            Click on the canvas to put the pen down, keep clicking to extend the line, and lift the pen to finish.
            """
        )

        session_state = gr.State(value=None)
        creation_state = gr.State(value=None)
        records_state = gr.State(value=[])

        with gr.Tabs():
            with gr.Tab("✏️ Draw"):
                with gr.Row():
                    with gr.Column(scale=2):
                        canvas = gr.Image(
                            label="Canvas",
                            type="pil",
                            interactive=False,
                        )
                        canvas_status = gr.Markdown()

                        with gr.Row():
                            lift_btn = gr.Button("🖊️ Lift pen", size="sm")
                            undo_btn = gr.Button("↩️ Undo", size="sm", interactive=False)
                            redo_btn = gr.Button("↪️ Redo", size="sm", interactive=False)
                            clear_btn = gr.Button("🗑️ Clear", size="sm")

                        with gr.Row():
                            tool_selector = gr.Radio(
                                choices=[tool.value for tool in Tool],
                                value=Tool.BRUSH.value,
                                label="Tool",
                            )
                            size_slider = gr.Slider(
                                minimum=ToolState.MIN_WIDTH,
                                maximum=ToolState.MAX_WIDTH,
                                value=ToolState().width,
                                step=1,
                                label="Brush Size",
                            )
                            color_picker = gr.ColorPicker(value="#000000", label="Color")

                        with gr.Row():
                            generate_btn = gr.Button("✨ Generate", variant="primary", size="lg")
                            stop_btn = gr.Button("⏹️ Cancel", variant="stop", size="lg")

                    with gr.Column(scale=2):
                        result_image = gr.Image(label="AI Artwork", interactive=False)
                        progress_status = gr.Markdown()
                        emotions_display = gr.Markdown(label="Emotions")
                        music_player = gr.Audio(label="Music", interactive=False)
                        attributes_display = gr.Markdown(label="Musical Attributes")

                        with gr.Row():
                            save_btn = gr.Button("💾 Save Creation", interactive=False)
                            save_status = gr.Markdown()

            with gr.Tab("🖼️ Gallery"):
                gallery_count = gr.Markdown("🖼️ Gallery: 0 creations")
                refresh_gallery_btn = gr.Button("🔄 Refresh", size="sm")
                gallery = gr.Gallery(label="Saved Creations", columns=3, height="auto")
                creation_details = gr.Markdown()
                creation_audio = gr.Audio(label="Music", interactive=False)

        canvas_outputs_list = [session_state, canvas, undo_btn, redo_btn, canvas_status]

        demo.load(fn=load_canvas, inputs=[session_state], outputs=canvas_outputs_list)
        canvas.select(fn=on_canvas_select, inputs=[session_state], outputs=canvas_outputs_list)
        lift_btn.click(fn=on_lift_pen, inputs=[session_state], outputs=canvas_outputs_list)
        undo_btn.click(fn=on_undo, inputs=[session_state], outputs=canvas_outputs_list)
        redo_btn.click(fn=on_redo, inputs=[session_state], outputs=canvas_outputs_list)
        clear_btn.click(fn=on_clear, inputs=[session_state], outputs=canvas_outputs_list)

        tool_selector.change(fn=on_tool_change, inputs=[session_state, tool_selector], outputs=[session_state])
        size_slider.release(fn=on_size_change, inputs=[session_state, size_slider], outputs=[session_state])
        color_picker.change(fn=on_color_change, inputs=[session_state, color_picker], outputs=[session_state])

        gen_event = generate_btn.click(
            fn=on_generate,
            inputs=[session_state],
            outputs=[
                result_image,
                emotions_display,
                music_player,
                attributes_display,
                progress_status,
                creation_state,
                save_btn,
            ],
        )
        stop_btn.click(fn=None, inputs=None, outputs=None, cancels=[gen_event])

        save_btn.click(fn=on_save, inputs=[creation_state], outputs=[save_status]).then(
            fn=load_gallery,
            outputs=[gallery, records_state, gallery_count],
        )

        refresh_gallery_btn.click(fn=load_gallery, outputs=[gallery, records_state, gallery_count])
        gallery.select(fn=on_gallery_select, inputs=[records_state], outputs=[creation_details, creation_audio])
        demo.load(fn=load_gallery, outputs=[gallery, records_state, gallery_count])

    return demo
