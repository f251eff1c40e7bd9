"""Process settings loaded from environment variables (and .env)."""
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = Path("~/.kofr/config")


class Settings(BaseSettings):
    """Global settings object.

    Attributes
    ----------
    config_file : Path
        Cluster configuration YAML; ``~`` is expanded.
    request_timeout_sec : float
        Read/write/connect timeout for Connect REST calls.
    probe_timeout_sec : float
        Timeout for a single host liveness probe.
    editor : str
        Program used by ``connector edit`` (``KOFR_EDITOR`` then ``EDITOR``).
    log_level : str
        Root log level for the CLI process.
    """

    model_config = SettingsConfigDict(
        env_prefix="KOFR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    config_file: Path = Field(DEFAULT_CONFIG_FILE, validate_default=True)
    request_timeout_sec: float = Field(5.0, gt=0)
    probe_timeout_sec: float = Field(5.0, gt=0)
    editor: str = Field(
        "vi",
        validation_alias=AliasChoices("KOFR_EDITOR", "EDITOR"),
    )
    log_level: str = "WARNING"

    @field_validator("config_file", mode="after")
    def _expand_home(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("log_level", mode="before")
    def _upper_level(cls, v):
        """Accept ``debug`` as well as ``DEBUG``."""
        return str(v).strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
