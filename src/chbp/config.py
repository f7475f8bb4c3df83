from pathlib import Path
from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Skill layout
    SKILL_DIR: Path = Path("skills/clickhouse-best-practices")
    RULES_DIR: Path = Path("skills/clickhouse-best-practices/rules")
    BUILD_DIR: Path = Path("packages/clickhouse-best-practices-build")
    OUTPUT_FILE: str = "AGENTS.md"
    SECTIONS_FILE: str = "_sections.md"
    METADATA_FILE: str = "metadata.json"
    SKILL_NAME: str = "clickhouse-best-practices"

    # clickhouse-local sandbox
    CLICKHOUSE_VERSION: str = "24.1.8.22"
    CLICKHOUSE_RELEASE_URL: str = "https://github.com/ClickHouse/ClickHouse/releases/download"
    SQL_MAX_EXECUTION_TIME: int = 10
    SQL_MAX_MEMORY_USAGE: int = 100_000_000
    SQL_MAX_ROWS_TO_READ: int = 1_000_000
    SQL_SANDBOX_PATH: Path = Path("/nonexistent/chbp-sandbox")

    # External link checking
    LINK_TIMEOUT_SECONDS: float = 10.0
    LINK_MAX_RETRIES: int = 2
    LINK_CONCURRENCY: int = 5
    LINK_RETRY_DELAYS: Tuple[float, ...] = (0.1, 0.2, 0.4)

    # Loads from .env file automatically
    model_config = SettingsConfigDict(
        env_prefix="CHBP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def clickhouse_bin_dir(self) -> Path:
        return self.BUILD_DIR / "bin"


# Private singleton instance
_settings = None


def get_settings() -> Settings:
    """
    Get or create the settings singleton.

    Raises:
        pydantic.ValidationError: If an environment override has the wrong type
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
