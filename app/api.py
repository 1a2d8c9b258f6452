"""JSON HTTP API for the drawing-to-music pipeline."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services import Services
from sketchmix.core.errors import (
    EmptyDrawingError,
    PipelineCancelledError,
    StageError,
    StorageError,
)
from sketchmix.core.models import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    CreationCreate,
    CreationRecord,
    GenerateImageRequest,
    GenerateImageResponse,
    GenerateMusicRequest,
    MessageResponse,
    MusicResult,
    PipelineResult,
)
from sketchmix.core.pipeline import PipelineRun
from sketchmix.utils.health import HealthStatus
from sketchmix.utils.image_utils import decode_drawing, is_surface_empty

logger = logging.getLogger(__name__)

# Non-standard status used when the client went away before the result was ready
CLIENT_CLOSED_REQUEST = 499

DISCONNECT_POLL_INTERVAL = 0.5

VALIDATION_MESSAGES = {
    "/api/generate-image": "Drawing data is required",
    "/api/generate": "Drawing data is required",
    "/api/analyze-image": "Image URL is required",
    "/api/generate-music": "Emotional description is required",
    "/api/save-creation": "All creation fields are required",
}

ERROR_RESPONSES = {
    400: {"model": MessageResponse},
    500: {"model": MessageResponse},
}

router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/generate-image", response_model=GenerateImageResponse)
async def generate_image(
    body: GenerateImageRequest,
    services: Services = Depends(get_services)
):
    image_url = await services.pipeline.generate_image(body.drawing_data)
    return GenerateImageResponse(image_url=image_url)


@router.post("/analyze-image", response_model=AnalyzeImageResponse)
async def analyze_image(
    body: AnalyzeImageRequest,
    services: Services = Depends(get_services)
):
    analysis = await services.pipeline.analyze_image(body.image_url)
    return AnalyzeImageResponse(analysis=analysis)


@router.post("/generate-music", response_model=MusicResult)
async def generate_music(
    body: GenerateMusicRequest,
    services: Services = Depends(get_services)
):
    return await services.pipeline.generate_music(body.emotional_description)


@router.post("/generate", response_model=PipelineResult)
async def generate(
    body: GenerateImageRequest,
    request: Request,
    services: Services = Depends(get_services)
):
    """Run all three stages for one drawing.

    The run is cancelled if the client disconnects before it finishes.
    """
    try:
        surface = decode_drawing(body.drawing_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if is_surface_empty(surface):
        raise EmptyDrawingError("Please draw something on the canvas first!")

    run = services.pipeline.start(body.drawing_data)
    watcher = asyncio.create_task(cancel_on_disconnect(request, run))
    try:
        return await run.result()
    finally:
        watcher.cancel()


@router.post("/save-creation", response_model=CreationRecord)
def save_creation(
    body: CreationCreate,
    services: Services = Depends(get_services)
):
    return services.creations.create(body)


@router.get("/creations", response_model=List[CreationRecord])
def list_creations(services: Services = Depends(get_services)):
    return services.creations.list_all()


@router.get(
    "/creations/{creation_id}",
    response_model=CreationRecord,
    responses={404: {"model": MessageResponse}}
)
def get_creation(creation_id: int, services: Services = Depends(get_services)):
    creation = services.creations.get(creation_id)
    if creation is None:
        raise HTTPException(status_code=404, detail="Creation not found")
    return creation


@router.get("/health")
async def health(services: Services = Depends(get_services)):
    """Health report; 503 when a critical dependency is down."""
    result = await services.health.check_health()
    status_code = 503 if result.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=result.to_dict())


async def cancel_on_disconnect(request: Request, run: PipelineRun) -> None:
    """Cancel a pipeline run once the client disconnects."""
    try:
        while not run.done:
            if await request.is_disconnected():
                logger.info("Client disconnected, cancelling generation")
                run.cancel()
                return
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"Disconnect watcher stopped: {e}")


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def install_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"message": ...}`` with the matching status."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        path = request.url.path
        if path.startswith("/api/creations/"):
            message = "Invalid creation ID"
        else:
            message = VALIDATION_MESSAGES.get(path, "Invalid request")
        logger.info(f"Rejected request to {path}: {exc.errors()}")
        return _message(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return _message(exc.status_code, str(exc.detail))

    @app.exception_handler(EmptyDrawingError)
    async def handle_empty_drawing(request: Request, exc: EmptyDrawingError):
        return _message(400, str(exc))

    @app.exception_handler(StageError)
    async def handle_stage_error(request: Request, exc: StageError):
        return _message(500, str(exc))

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        return _message(500, str(exc))

    @app.exception_handler(PipelineCancelledError)
    async def handle_cancelled(request: Request, exc: PipelineCancelledError):
        return _message(CLIENT_CLOSED_REQUEST, str(exc))


def create_api(services: Services) -> FastAPI:
    """Create the FastAPI application serving the JSON routes.

    Args:
        services: Pipeline, storage and health checker to serve

    Returns:
        FastAPI app; backends are closed when it shuts down
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down, closing backends")
        await services.aclose()

    app = FastAPI(title="SketchMix", version="1.0.0", lifespan=lifespan)
    app.state.services = services
    install_error_handlers(app)
    app.include_router(router)
    return app
