"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """endotrack server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the symptom log.
    endo_host: str = "127.0.0.1"
    endo_port: int = 8001
    endo_log_level: str = "info"
    # "streamable-http" or "stdio"
    endo_transport: str = "streamable-http"
    # If binding to non-loopback, refuse to start unless this is set true.
    endo_allow_insecure_bind: bool = False

    # Storage (symptom data bank)
    db_path: str = "~/.endotrack/symptoms.db"
    user_id: str = "local"

    # Encryption (notes at rest); empty disables persistence
    encryption_key: str = ""

    # Summary
    top_symptom_limit: int = 5

    # Exports
    export_dir: str = "~/.endotrack/exports"

    @field_validator("endo_transport")
    @classmethod
    def _check_transport(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("streamable-http", "stdio"):
            raise ValueError("endo_transport must be 'streamable-http' or 'stdio'")
        return value

    @field_validator("top_symptom_limit")
    @classmethod
    def _check_top_limit(cls, value: int) -> int:
        if not 3 <= value <= 5:
            raise ValueError("top_symptom_limit must be between 3 and 5")
        return value


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
