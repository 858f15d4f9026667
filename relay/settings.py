import os
from enum import Enum
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):  # type: ignore[misc]
    """
    Relay server settings.

    Every field can be overridden with an environment variable of the same
    name. Logging defaults depend on ``ENV`` unless set explicitly.
    """

    model_config = SettingsConfigDict(case_sensitive=True)

    ENV: Environment = Environment.DEV

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # WebSocket settings
    WS_PATH: str = "/ws"
    ALLOWED_ORIGINS: list[str] = ["*"]
    SEND_TIMEOUT_SECONDS: float = 5.0

    # Pre-built editor bundle, served when the directory exists
    STATIC_DIR: str = "dist"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/relay_errors.log"
    LOG_CONSOLE_FORMAT: str = "human"

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._apply_environment_defaults()

    def _apply_environment_defaults(self) -> None:
        """Apply environment-specific logging defaults."""
        if self.ENV == Environment.DEV:
            defaults = {"LOG_LEVEL": "DEBUG", "LOG_CONSOLE_FORMAT": "human"}
        elif self.ENV == Environment.STAGING:
            defaults = {"LOG_LEVEL": "INFO", "LOG_CONSOLE_FORMAT": "json"}
        else:
            defaults = {"LOG_LEVEL": "WARNING", "LOG_CONSOLE_FORMAT": "json"}

        for name, value in defaults.items():
            if os.getenv(name) is None and name not in self.model_fields_set:
                setattr(self, name, value)

    @property
    def allow_any_origin(self) -> bool:
        """Whether WebSocket upgrades are accepted from any origin."""
        return "*" in self.ALLOWED_ORIGINS


app_settings = Settings()
