"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from backend/ regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"

# Seed JSON shipped with the package
DEFAULT_SEED_DIR = Path(__file__).resolve().parents[1] / "data"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database (preference storage)
    database_url: str = "sqlite+aiosqlite:///./jobsite_crm.db"

    # Seed / reference data
    seed_data_dir: str = ""

    # Attribution
    default_user_id: int = 1
    legacy_note_author_id: int = 1

    # CORS / Frontend
    cors_origins: str = "http://localhost:5173"

    # General
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def seed_path(self) -> Path:
        """Directory holding the seed JSON files."""
        return Path(self.seed_data_dir) if self.seed_data_dir else DEFAULT_SEED_DIR


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
