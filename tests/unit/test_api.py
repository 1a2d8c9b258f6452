"""Unit tests for the HTTP API."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from app.api import CLIENT_CLOSED_REQUEST, cancel_on_disconnect, create_api
from app.services import Services
from sketchmix.core.errors import PipelineCancelledError, StorageError
from sketchmix.core.music_generator import MusicGenerator
from sketchmix.core.pipeline import GenerationPipeline
from sketchmix.storage.creations import CreationRepository
from sketchmix.utils.health import HealthChecker, Probe
from sketchmix.utils.mood import MELANCHOLIC_TRACK


@pytest.fixture
def services(tmp_path, mock_stylizer, mock_analyzer, mock_music_generator):
    pipeline = GenerationPipeline(mock_stylizer, mock_analyzer, mock_music_generator)
    creations = CreationRepository.from_url(f"sqlite:///{tmp_path / 'api.db'}")
    health = HealthChecker([Probe("database", AsyncMock(return_value=True))])
    return Services(pipeline=pipeline, creations=creations, health=health)


@pytest.fixture
def client(services):
    return TestClient(create_api(services))


@pytest.fixture
def creation_body(sample_analysis):
    return {
        "drawingData": "data:image/png;base64,AAAA",
        "generatedImage": "https://img/1.png",
        "emotionalAnalysis": sample_analysis.model_dump(by_alias=True),
        "musicUrl": "https://music/1.mp3",
    }


class TestStageRoutes:
    """Tests for the single-stage routes."""

    def test_generate_image(self, client, drawing_data):
        response = client.post("/api/generate-image", json={"drawingData": drawing_data})

        assert response.status_code == 200
        assert response.json() == {"imageUrl": "https://example.com/art.png"}

    def test_generate_image_missing_field(self, client):
        response = client.post("/api/generate-image", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "Drawing data is required"}

    def test_generate_image_provider_error(self, client, services, drawing_data):
        services.pipeline.stylizer.stylize.side_effect = RuntimeError("Rate limit exceeded.")

        response = client.post("/api/generate-image", json={"drawingData": drawing_data})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to generate image: Rate limit exceeded."}

    def test_analyze_image(self, client):
        response = client.post("/api/analyze-image", json={"imageUrl": "https://img/1.png"})

        assert response.status_code == 200
        analysis = response.json()["analysis"]
        assert analysis["description"] == "a calm blue lake at dusk"
        assert analysis["dominantEmotions"][0] == {"name": "calm", "percentage": 70.0}

    def test_analyze_image_empty_url(self, client):
        response = client.post("/api/analyze-image", json={"imageUrl": ""})

        assert response.status_code == 400
        assert response.json() == {"message": "Image URL is required"}

    def test_generate_music(self, client):
        response = client.post("/api/generate-music", json={"emotionalDescription": "calm"})

        assert response.status_code == 200
        data = response.json()
        assert data["musicUrl"] == "https://example.com/track.mp3"
        assert data["source"] == "composed"
        assert data["attributes"][0]["name"] == "Tempo"

    def test_generate_music_fallback(self, client, services):
        composer = AsyncMock()
        composer.name = "Down"
        composer.compose.side_effect = RuntimeError("Failed to compose track")
        services.pipeline.music_generator = MusicGenerator(composer)

        response = client.post("/api/generate-music", json={"emotionalDescription": "so somber"})

        assert response.status_code == 200
        assert response.json()["musicUrl"] == MELANCHOLIC_TRACK.url
        assert response.json()["source"] == "fallback"

    def test_generate_music_missing_description(self, client):
        response = client.post("/api/generate-music", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "Emotional description is required"}


class TestGenerateRoute:
    """Tests for the full pipeline route."""

    def test_generate(self, client, drawing_data):
        response = client.post("/api/generate", json={"drawingData": drawing_data})

        assert response.status_code == 200
        data = response.json()
        assert data["imageUrl"] == "https://example.com/art.png"
        assert data["analysis"]["description"] == "a calm blue lake at dusk"
        assert data["music"]["musicUrl"] == "https://example.com/track.mp3"

    def test_generate_empty_drawing(self, client, services, empty_drawing_data):
        response = client.post("/api/generate", json={"drawingData": empty_drawing_data})

        assert response.status_code == 400
        assert response.json() == {"message": "Please draw something on the canvas first!"}
        services.pipeline.stylizer.stylize.assert_not_awaited()

    def test_generate_undecodable_drawing(self, client):
        response = client.post("/api/generate", json={"drawingData": "data:image/png;base64,@@@"})

        assert response.status_code == 400
        assert "not a valid image" in response.json()["message"]

    def test_generate_stage_failure(self, client, services, drawing_data):
        services.pipeline.analyzer.analyze.side_effect = ConnectionError("Invalid OpenAI API key.")

        response = client.post("/api/generate", json={"drawingData": drawing_data})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to analyze image: Invalid OpenAI API key."
        services.pipeline.music_generator.generate.assert_not_awaited()


class TestCancelOnDisconnect:
    """Tests for the disconnect watcher."""

    def test_cancels_when_client_disconnects(self):
        request = Mock()
        request.is_disconnected = AsyncMock(return_value=True)
        run = Mock(done=False)

        asyncio.run(cancel_on_disconnect(request, run))

        run.cancel.assert_called_once()

    def test_stops_when_run_finishes(self):
        request = Mock()
        request.is_disconnected = AsyncMock(return_value=False)
        run = Mock(done=True)

        asyncio.run(cancel_on_disconnect(request, run))

        run.cancel.assert_not_called()

    def test_watcher_errors_are_contained(self):
        request = Mock()
        request.is_disconnected = AsyncMock(side_effect=RuntimeError("receive closed"))
        run = Mock(done=False)

        asyncio.run(cancel_on_disconnect(request, run))

        run.cancel.assert_not_called()

    def test_cancelled_run_maps_to_499(self, client, services, drawing_data):
        with patch.object(
            GenerationPipeline,
            "start",
            return_value=Mock(result=AsyncMock(side_effect=PipelineCancelledError("Generation was cancelled")), done=True),
        ):
            response = client.post("/api/generate", json={"drawingData": drawing_data})

        assert response.status_code == CLIENT_CLOSED_REQUEST
        assert response.json() == {"message": "Generation was cancelled"}


class TestCreationRoutes:
    """Tests for saving and listing creations."""

    def test_save_and_fetch(self, client, creation_body):
        response = client.post("/api/save-creation", json=creation_body)

        assert response.status_code == 200
        saved = response.json()
        assert saved["id"] == 1
        assert isinstance(saved["createdAt"], int)
        assert saved["emotionalAnalysis"] == creation_body["emotionalAnalysis"]

        fetched = client.get(f"/api/creations/{saved['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == saved

    def test_save_missing_fields(self, client, creation_body):
        del creation_body["musicUrl"]

        response = client.post("/api/save-creation", json=creation_body)

        assert response.status_code == 400
        assert response.json() == {"message": "All creation fields are required"}

    def test_list_creations(self, client, creation_body):
        client.post("/api/save-creation", json=creation_body)
        client.post("/api/save-creation", json={**creation_body, "musicUrl": "https://music/2.mp3"})

        response = client.get("/api/creations")

        assert response.status_code == 200
        assert [c["musicUrl"] for c in response.json()] == [
            "https://music/1.mp3",
            "https://music/2.mp3",
        ]

    def test_creation_not_found(self, client):
        response = client.get("/api/creations/99")

        assert response.status_code == 404
        assert response.json() == {"message": "Creation not found"}

    def test_invalid_creation_id(self, client):
        response = client.get("/api/creations/abc")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid creation ID"}

    def test_storage_failure(self, client, services, creation_body):
        services.creations = Mock()
        services.creations.create.side_effect = StorageError("Failed to save creation: disk full")

        response = client.post("/api/save-creation", json=creation_body)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to save creation: disk full"}


class TestHealthRoute:
    """Tests for the health route."""

    @patch('psutil.virtual_memory')
    @patch('psutil.disk_usage')
    def test_healthy(self, mock_disk, mock_memory, client):
        mock_memory.return_value = Mock(percent=30.0)
        mock_disk.return_value = Mock(percent=40.0)

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["details"]["dependencies"] == {"database": True}

    @patch('psutil.virtual_memory')
    @patch('psutil.disk_usage')
    def test_unhealthy(self, mock_disk, mock_memory, client, services):
        mock_memory.return_value = Mock(percent=30.0)
        mock_disk.return_value = Mock(percent=40.0)
        services.health.probes = [Probe("database", AsyncMock(return_value=False))]

        response = client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
