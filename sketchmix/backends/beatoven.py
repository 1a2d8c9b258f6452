"""Beatoven.ai backend: task-based music composition with status polling."""

import logging
from typing import Optional
import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from sketchmix.core.base_backend import MusicComposer
from sketchmix.core.errors import CompositionFailedError, CompositionTimeoutError
from sketchmix.utils.mood import format_composition_prompt

logger = logging.getLogger(__name__)


class TaskMeta(BaseModel):
    track_url: Optional[str] = None
    track_id: Optional[str] = None
    project_id: Optional[str] = None


class TaskStatus(BaseModel):
    """Status of a composition task as reported by Beatoven."""

    status: str
    meta: Optional[TaskMeta] = None

    @property
    def track_url(self) -> Optional[str]:
        return self.meta.track_url if self.meta else None

    @property
    def is_composed(self) -> bool:
        return self.status == "composed" and bool(self.track_url)

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


class BeatovenComposer(MusicComposer):
    """Composes tracks with the Beatoven.ai public API.

    Composition is asynchronous on Beatoven's side: a compose request returns
    a task id whose status is polled until the track is ready.

    Attributes:
        api_key: Beatoven API key
        poll_interval: Seconds between status checks
        max_attempts: Maximum number of status checks before giving up
        client: httpx.AsyncClient bound to the API base URL
    """

    BASE_URL = "https://public-api.beatoven.ai"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        poll_interval: float = 3.0,
        max_attempts: int = 20,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the Beatoven backend.

        Args:
            api_key: Beatoven API key
            base_url: Optional API base URL override
            poll_interval: Seconds between status checks
            max_attempts: Status checks before the task is considered timed out
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)

        Raises:
            ValueError: If API key is empty or polling settings are invalid
        """
        super().__init__(api_key)

        if not api_key:
            raise ValueError("Beatoven API key is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.base_url = base_url or self.BASE_URL
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        logger.info(
            f"Initialized Beatoven backend ({self.max_attempts} polls every {self.poll_interval}s)"
        )

    async def compose_track(self, prompt_text: str) -> str:
        """Start a composition task.

        Returns:
            The task id to poll

        Raises:
            RuntimeError: If the request fails or no task id is returned
        """
        payload = {
            "prompt": {"text": prompt_text},
            "format": "mp3",
            "looping": False,
        }
        try:
            response = await self.client.post("/api/v1/tracks/compose", json=payload)
            response.raise_for_status()
            task_id = response.json().get("task_id")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Beatoven compose error: {e}")
            raise RuntimeError(f"Failed to compose track: {e}") from e

        if not task_id:
            raise RuntimeError("Failed to compose track: no task id returned")

        logger.info(f"Started Beatoven composition task {task_id}")
        return task_id

    async def check_task_status(self, task_id: str) -> TaskStatus:
        """Fetch the current status of a composition task.

        Raises:
            RuntimeError: If the request fails or the response is malformed
        """
        try:
            response = await self.client.get(f"/api/v1/tasks/{task_id}")
            response.raise_for_status()
            return TaskStatus.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error(f"Beatoven task status error: {e}")
            raise RuntimeError(f"Failed to check task status: {e}") from e

    async def wait_for_track(self, task_id: str) -> str:
        """Poll a task until its track is ready.

        Waits are asyncio sleeps, so other requests keep being served while
        a composition is pending.

        Returns:
            URL of the composed track

        Raises:
            CompositionFailedError: If the task reports "failed"
            CompositionTimeoutError: If max_attempts polls pass without a track
            RuntimeError: If a status request fails
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda status: not status.is_composed),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    status = await self.check_task_status(task_id)
                    logger.debug(
                        f"Task {task_id} poll {attempt.retry_state.attempt_number}: {status.status}"
                    )
                    if status.is_failed:
                        raise CompositionFailedError("Music composition failed")
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(status)
        except RetryError as e:
            raise CompositionTimeoutError(
                f"Music composition timed out after {self.max_attempts} status checks"
            ) from e

        return status.track_url

    async def compose(self, emotional_description: str) -> str:
        """Compose a track for an emotional description.

        Returns:
            URL of the composed track
        """
        prompt = format_composition_prompt(emotional_description)
        task_id = await self.compose_track(prompt)
        track_url = await self.wait_for_track(task_id)
        logger.info(f"Beatoven composition complete: {track_url}")
        return track_url

    async def health_check(self) -> bool:
        try:
            logger.debug("Performing health check...")
            response = await self.client.get("/")
            healthy = response.status_code < 500
            logger.debug(f"Health check status: {response.status_code}")
            return healthy
        except httpx.HTTPError as e:
            logger.warning(f"Health check failed: {e}")
            return False

    async def aclose(self) -> None:
        await self.client.aclose()

    @property
    def name(self) -> str:
        return "Beatoven"
