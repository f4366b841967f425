"""
Configuration loader.

Uses pydantic-settings to read environment variables from .env and expose
them as a typed Settings object. Provides a cached get_settings() accessor.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    """Generator and API settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Workspace layout ──────────────────────────────────────
    CONTRACTS_DIR: Path = Path("contracts")
    PACKAGES_DIR: Path = Path("frontend/packages")
    OUTPUT_PATH: Path = Path("frontend/lib/contract-metadata.json")

    # ── Analysis ──────────────────────────────────────────────
    ENTRY_MODULE: str = "lib"
    BINDING_ENTRY: str = "src/index.ts"
    NETWORKS: str = "testnet,mainnet,futurenet"
    MAX_WORKERS: int = 4

    # ── API ───────────────────────────────────────────────────
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    MAX_INPUT_SIZE_BYTES: int = 500_000
    SLOW_REQUEST_MS: int = 2000

    # ── Rate limits (slowapi syntax) ──────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    DEFAULT_RATE_LIMIT: str = "60/minute"
    ANALYZE_RATE_LIMIT: str = "30/minute"
    GENERATE_RATE_LIMIT: str = "5/minute"
    CONSTRUCTOR_RATE_LIMIT: str = "30/minute"

    # ── Environment ───────────────────────────────────────────
    ENVIRONMENT: str = "development"

    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def networks_list(self) -> list[str]:
        """Recognised network tags, in declaration order."""
        return [n.strip() for n in self.NETWORKS.split(",") if n.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
