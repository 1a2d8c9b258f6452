"""Unit tests for service wiring."""

import asyncio
from unittest.mock import patch

import pytest

from app.config import Settings
from app.services import create_services


@pytest.fixture
def services(tmp_path):
    settings = Settings(
        _env_file=None,
        openai_api_key="sk-test",
        beatoven_api_key="bt-test",
        stylizer_backend="openai",
        database_url=f"sqlite:///{tmp_path / 'services.db'}",
    )
    services = create_services(settings)
    yield services
    asyncio.run(services.aclose())


class TestCreateServices:
    """Tests for create_services."""

    def test_missing_keys(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            create_services(Settings(_env_file=None, openai_api_key="", beatoven_api_key="bt-test"))

    def test_probes(self, services):
        names = [probe.name for probe in services.health.probes]

        assert names == ["database", "openai", "beatoven"]
        assert not services.health.probes[2].critical

    def test_database_probe_runs_in_worker_thread(self, services):
        probe = services.health.probes[0]

        with patch("app.services.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            assert asyncio.run(probe.check()) is True

        to_thread.assert_called_once_with(services.creations.ping)
