import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SYNC_CODE = "SHARED"
DEFAULT_STATE_PATH = Path.home() / ".gymsync" / "state.json"
GIPHY_API_URL = "https://api.giphy.com/v1/gifs"


@dataclass(frozen=True)
class Config:
    database_url: str | None
    state_path: Path = DEFAULT_STATE_PATH
    default_sync_code: str = DEFAULT_SYNC_CODE
    giphy_api_key: str = ""
    giphy_api_url: str = GIPHY_API_URL
    subscribe_delay_seconds: float = 0.5
    poll_interval_seconds: float = 5.0
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            state_path=Path(os.environ.get("GYMSYNC_STATE_PATH", str(DEFAULT_STATE_PATH))),
            default_sync_code=os.environ.get("GYMSYNC_SYNC_CODE", DEFAULT_SYNC_CODE),
            giphy_api_key=os.environ.get("GIPHY_API_KEY", ""),
            giphy_api_url=os.environ.get("GYMSYNC_GIPHY_URL", GIPHY_API_URL),
            subscribe_delay_seconds=float(os.environ.get("GYMSYNC_SUBSCRIBE_DELAY", "0.5")),
            poll_interval_seconds=float(os.environ.get("GYMSYNC_POLL_INTERVAL", "5.0")),
            log_format=os.environ.get("GYMSYNC_LOG_FORMAT", "text"),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("DATABASE_URL must be set")
        return self.database_url
