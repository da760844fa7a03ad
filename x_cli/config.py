from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List, Optional
from functools import lru_cache
from pathlib import Path
import os

from .core.errors import ConfigurationError
from .models.api_models import Credentials

DEFAULT_ENV_FILE = ".env"

CREDENTIAL_FIELDS = {
    "consumer_key": "X_API_KEY",
    "consumer_secret": "X_API_SECRET",
    "token_key": "X_ACCESS_TOKEN",
    "token_secret": "X_ACCESS_TOKEN_SECRET",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Credentials
    X_API_KEY: Optional[str] = None
    X_API_SECRET: Optional[str] = None
    X_ACCESS_TOKEN: Optional[str] = None
    X_ACCESS_TOKEN_SECRET: Optional[str] = None

    # Endpoints
    X_API_BASE_URL: str = "https://api.twitter.com/2"
    X_UPLOAD_URL: str = "https://upload.twitter.com/1.1/media/upload.json"
    X_OAUTH_BASE_URL: str = "https://api.x.com/oauth"
    X_WEB_URL: str = "https://x.com"

    # Bootstrap authorization callback
    X_CALLBACK_HOST: str = "localhost"
    X_CALLBACK_PORT: int = 3456

    # Network
    X_REQUEST_TIMEOUT: float = 30.0
    X_MEDIA_PROCESSING_TIMEOUT: Optional[float] = None

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    @property
    def callback_url(self) -> str:
        return f"http://{self.X_CALLBACK_HOST}:{self.X_CALLBACK_PORT}/callback"

    def missing(self, names: List[str]) -> List[str]:
        return [name for name in names if not (getattr(self, name) or "").strip()]

    def consumer_credentials(self) -> Dict[str, str]:
        """Consumer key/secret only; enough for the authorization handshake."""
        missing = self.missing(["X_API_KEY", "X_API_SECRET"])
        if missing:
            raise ConfigurationError(
                missing, hint="Copy .env.example to .env and fill in your consumer credentials."
            )
        return {"client_key": self.X_API_KEY, "client_secret": self.X_API_SECRET}

    def credentials(self) -> Credentials:
        """
        Build the full OAuth 1.0a credential set.

        Raises:
            ConfigurationError: listing every missing variable
        """
        missing = self.missing(list(CREDENTIAL_FIELDS.values()))
        if missing:
            raise ConfigurationError(missing)
        return Credentials(
            **{field: SecretStr(getattr(self, env)) for field, env in CREDENTIAL_FIELDS.items()}
        )


def resolve_env_file(env_file: Optional[str] = None) -> Path:
    return Path(env_file or os.getenv("X_CLI_ENV_FILE") or DEFAULT_ENV_FILE)


@lru_cache()
def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get cached settings instance for the given .env file."""
    return Settings(_env_file=str(resolve_env_file(env_file)))
