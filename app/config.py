"""Application configuration management."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    These settings are automatically loaded from the .env file or environment variables.
    All sensitive data (API keys) should be stored in environment variables, not hardcoded.

    Attributes:
        openai_api_key: OpenAI key for stylization, emotion analysis and attributes
        beatoven_api_key: Beatoven.ai key for music composition
        replicate_token: Replicate token, needed only for the Replicate stylizer
        stylizer_backend: Which backend performs stage 1 ("openai" or "replicate")
        music_poll_interval: Seconds between composition status checks
        music_max_poll_attempts: Status checks before composition times out
        stylize_timeout / analyze_timeout / music_timeout: Per-stage limits in seconds
        max_history: Undo snapshots kept per drawing session
        database_url: SQLAlchemy URL for saved creations
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        run_integration_tests: Whether to run integration tests
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # API Keys
    openai_api_key: str = ""
    beatoven_api_key: str = ""
    replicate_token: Optional[str] = None

    # Model Configuration
    stylizer_backend: str = "openai"
    openai_chat_model: str = "gpt-4o"
    openai_image_model: str = "dall-e-3"
    replicate_model: str = "black-forest-labs/flux-dev"
    beatoven_base_url: str = "https://public-api.beatoven.ai"

    # Pipeline Settings
    music_poll_interval: float = 3.0
    music_max_poll_attempts: int = 20
    stylize_timeout: float = 120.0
    analyze_timeout: float = 60.0
    music_timeout: float = 90.0
    request_timeout: float = 60.0

    # Drawing Settings
    canvas_width: int = 800
    canvas_height: int = 600
    max_history: int = 50

    # Application Settings
    database_url: str = "sqlite:///./sketchmix.db"
    log_level: str = "INFO"
    server_host: str = "0.0.0.0"
    server_port: int = 7861

    # Testing
    run_integration_tests: bool = False

    def validate_required_keys(self) -> None:
        """Validate that required API keys are present.

        Raises:
            ValueError: If required API keys are missing
        """
        if not self.openai_api_key:
            raise ValueError(
                "OPENAI_API_KEY is required. "
                "Please set it in your .env file or environment variables. "
                "Get your key from: https://platform.openai.com/api-keys"
            )

        if not self.beatoven_api_key:
            raise ValueError(
                "BEATOVEN_API_KEY is required. "
                "Please set it in your .env file or environment variables. "
                "Get your key from: https://www.beatoven.ai/api"
            )

        if self.stylizer_backend == "replicate" and not self.replicate_token:
            raise ValueError(
                "REPLICATE_TOKEN is required when using the Replicate stylizer. "
                "Get your token from: https://replicate.com/account/api-tokens"
            )

        if self.stylizer_backend not in ("openai", "replicate"):
            raise ValueError(
                f"Unknown STYLIZER_BACKEND '{self.stylizer_backend}'. "
                "Use 'openai' or 'replicate'."
            )


# Global settings instance
settings = Settings()
