from __future__ import annotations

"""Backend settings loader from environment variables."""

from dataclasses import dataclass
from typing import Tuple
import os

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in {"1", "true", "yes"}


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Read a comma-separated env var, falling back to ``default`` when empty."""
    value = os.getenv(name, "").strip()
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _project_id() -> str | None:
    """Return the active GCP project ID if set."""
    for key in ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT", "PROJECT_ID"):
        value = os.getenv(key)
        if value:
            return value
    return None


def _app_env() -> str:
    """Return the application environment name."""
    return os.getenv("APP_ENV") or os.getenv("ENV") or "dev"


@dataclass(frozen=True)
class Settings:
    """Configuration values parsed from the environment."""
    app_env: str
    project_id: str | None
    backend_debug: bool
    service_details_collection: str
    service_songs_collection: str
    orphaned_songs_collection: str
    cors_allow_origins: Tuple[str, ...]

    @classmethod
    def from_env(cls) -> "Settings":
        """Construct settings from environment variables."""
        return cls(
            app_env=_app_env(),
            project_id=_project_id(),
            backend_debug=_env_bool("BACKEND_DEBUG", False),
            service_details_collection=os.getenv("SERVICE_DETAILS_COLLECTION", "serviceDetails"),
            service_songs_collection=os.getenv("SERVICE_SONGS_COLLECTION", "service_songs"),
            orphaned_songs_collection=os.getenv("ORPHANED_SONGS_COLLECTION", "orphaned_songs"),
            cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS),
        )
