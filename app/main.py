"""SketchMix application: JSON API plus the Gradio drawing UI on one server."""

import logging
from typing import Optional

import gradio as gr
import uvicorn
from fastapi import FastAPI

from app.api import create_api
from app.config import Settings, settings
from app.services import create_services
from app.ui import create_ui
from sketchmix.drawing.session import DrawingSession

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the full application.

    The API is served under ``/api`` and the UI is mounted at ``/``.

    Args:
        app_settings: Settings to use, defaults to the environment-loaded settings

    Returns:
        FastAPI application

    Raises:
        ValueError: If required configuration is missing
    """
    app_settings = app_settings or settings
    services = create_services(app_settings)

    def new_session() -> DrawingSession:
        return DrawingSession(
            width=app_settings.canvas_width,
            height=app_settings.canvas_height,
            max_history=app_settings.max_history,
        )

    app = create_api(services)
    demo = create_ui(services, session_factory=new_session)
    app = gr.mount_gradio_app(app, demo, path="/")

    logger.info("SketchMix application created")
    return app


if __name__ == "__main__":
    application = create_app()

    logger.info(f"Launching SketchMix on {settings.server_host}:{settings.server_port}...")
    uvicorn.run(
        application,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower()
    )
