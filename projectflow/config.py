"""
Environment-driven configuration for the ProjectFlow service.
"""
import os
from dataclasses import dataclass

DEFAULT_DB_PATH = "./database/tasks.db"
DEFAULT_SNAPSHOT_PATH = "./database/snapshot.json"


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    snapshot_path: str = DEFAULT_SNAPSHOT_PATH
    log_level: str = "INFO"
    query_slow_threshold: float = 0.1
    enable_query_logging: bool = True
    host: str = "0.0.0.0"
    port: int = 8004

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        PROJECTFLOW_DB_PATH and PROJECTFLOW_SNAPSHOT_PATH locate the store and
        the JSON snapshot; DB_QUERY_SLOW_THRESHOLD and DB_ENABLE_QUERY_LOGGING
        tune query logging.
        """
        return cls(
            db_path=os.getenv("PROJECTFLOW_DB_PATH", DEFAULT_DB_PATH),
            snapshot_path=os.getenv("PROJECTFLOW_SNAPSHOT_PATH", DEFAULT_SNAPSHOT_PATH),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            query_slow_threshold=float(os.getenv("DB_QUERY_SLOW_THRESHOLD", "0.1")),
            enable_query_logging=os.getenv("DB_ENABLE_QUERY_LOGGING", "true").lower() == "true",
            host=os.getenv("PROJECTFLOW_HOST", "0.0.0.0"),
            port=int(os.getenv("PROJECTFLOW_PORT", "8004")),
        )


def get_settings() -> Settings:
    """Read the current settings. Environment changes are picked up on every call."""
    return Settings.from_env()
