"""
Shipping settings sourced from the environment or a .env file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from seeker_client.models import TargetConfig


def _find_env_file() -> Optional[Path]:
    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            return candidate
    return None


_ENV_PATH = _find_env_file()
if _ENV_PATH is not None:
    load_dotenv(dotenv_path=_ENV_PATH, override=False)


class Settings(BaseSettings):
    """Environment view of a TargetConfig, plus the CLI log level."""

    model_config = SettingsConfigDict(
        env_prefix="SEEKER_",
        env_file=str(_ENV_PATH) if _ENV_PATH is not None else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SEEKER_SERVER_URL", "SEEKER_SERVERURL"),
    )
    timeout_seconds: Optional[float] = None
    # JSON object, e.g. SEEKER_PROPERTIES='{"app": "billing", "host": "${machinename}"}'
    properties: Dict[str, Any] = Field(default_factory=dict)
    log_level: str = "INFO"

    def target_config(self) -> TargetConfig:
        return TargetConfig(
            server_url=self.server_url,
            properties=self.properties,
            timeout_seconds=self.timeout_seconds,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
