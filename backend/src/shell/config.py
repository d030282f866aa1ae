"""Server Configuration - Environment-driven settings.

All settings come from environment variables so the same image runs locally
and on Cloud Run.
"""

import os
from dataclasses import dataclass, field


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class ServerConfig:
    """Runtime configuration.

    Attributes:
        firestore_project: GCP project ID (None for default)
        firestore_database: Firestore database name
        host: Interface to bind
        port: Port to bind
        cors_origins: Origins allowed by CORS
        log_level: Root logging level name
    """

    firestore_project: str | None = None
    firestore_database: str | None = "health-tracker"
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build configuration from the current environment."""
        return cls(
            firestore_project=os.environ.get("FIRESTORE_PROJECT") or None,
            firestore_database=os.environ.get("FIRESTORE_DATABASE", "health-tracker"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", 8080)),
            cors_origins=_split_origins(os.environ.get("CORS_ORIGINS", "*")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def get_api_key() -> str | None:
    """Read the server secret at request time so rotation needs no restart."""
    return os.environ.get("API_KEY") or None
