"""
Runtime configuration.

Everything is read from the environment so the launcher and tests can
override it without touching code.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_DATA_FOLDER = Path("./data/payloads")

WAYPOINT_API_URL_ENV = "TRIPCORE_WAYPOINT_API_URL"
API_TOKEN_ENV = "TRIPCORE_API_TOKEN"
DATA_FOLDER_ENV = "TRIPCORE_DATA_FOLDER"
HTTP_TIMEOUT_ENV = "TRIPCORE_HTTP_TIMEOUT"
SHORT_IDLE_ENV = "TRIPCORE_SHORT_IDLE_SECONDS"
LONG_IDLE_ENV = "TRIPCORE_LONG_IDLE_SECONDS"
PLATES_FILE_ENV = "TRIPCORE_PLATES_FILE"


@dataclass(frozen=True)
class Settings:
    """Service settings."""

    waypoint_api_url: Optional[str] = None
    api_token: Optional[str] = None
    data_folder: Path = DEFAULT_DATA_FOLDER
    http_timeout_s: float = 30.0
    short_idle_seconds: int = 120  # idle runs at or below this count as running
    long_idle_seconds: int = 300   # idle runs above this become stops
    plates_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            waypoint_api_url=os.getenv(WAYPOINT_API_URL_ENV) or None,
            api_token=os.getenv(API_TOKEN_ENV) or None,
            data_folder=Path(os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER))),
            http_timeout_s=float(os.getenv(HTTP_TIMEOUT_ENV, "30")),
            short_idle_seconds=int(os.getenv(SHORT_IDLE_ENV, "120")),
            long_idle_seconds=int(os.getenv(LONG_IDLE_ENV, "300")),
            plates_file=Path(os.environ[PLATES_FILE_ENV]) if os.getenv(PLATES_FILE_ENV) else None,
        )
