"""
Tsrc Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


SUPPORTED_TARGETS = ("ES3", "ES5", "ES6")
SUPPORTED_MODULES = ("commonjs", "amd")


def _split_csv(v: str | list[str]) -> list[str]:
    if isinstance(v, str):
        return [p.strip() for p in v.split(",") if p.strip()]
    return v


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    enabled: bool = Field(default=False, description="Keep watching and recompiling")
    debounce_delay_ms: int = Field(default=500, ge=10, le=60000)
    pattern: str = Field(default="*.ts", description="Filename pattern to watch")
    monitor_parent: bool = Field(default=False, description="Exit with the parent process")


class BuildSettings(BaseSettings):
    """Source tree and manifest settings."""

    model_config = SettingsConfigDict(env_prefix="BUILD_")

    root: Path = Field(default=Path("."), description="Project root to watch and compile")
    ignore: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Directory prefixes to ignore",
    )
    declaration_suffix: str = Field(default=".d.ts")
    response_file: str = Field(default=".tsrc", description="Compiler manifest filename")

    @field_validator("ignore", mode="before")
    @classmethod
    def parse_ignore(cls, v: str | list[str]) -> list[str]:
        """Parse ignore paths from comma-separated string or list."""
        return _split_csv(v)


class CompilerSettings(BaseSettings):
    """External compiler settings, passed through verbatim."""

    model_config = SettingsConfigDict(env_prefix="COMPILER_")

    executable: str = Field(default="tsc")
    target: str | None = Field(default="ES5")
    module: str | None = Field(default=None)
    source_map: bool = Field(default=True)
    extra_args: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("target", mode="before")
    @classmethod
    def validate_target(cls, v: str | None) -> str | None:
        """Normalize and check the ECMAScript target."""
        if v is None or v == "":
            return None
        target = str(v).upper()
        if target not in SUPPORTED_TARGETS:
            raise ValueError(
                f"Unsupported target {v}; must be one of {', '.join(SUPPORTED_TARGETS)}"
            )
        return target

    @field_validator("module", mode="before")
    @classmethod
    def validate_module(cls, v: str | None) -> str | None:
        """Check the module code generation option."""
        if v is None or v == "":
            return None
        module = str(v).lower()
        if module not in SUPPORTED_MODULES:
            raise ValueError(
                f"Unsupported module {v}; must be one of {', '.join(SUPPORTED_MODULES)}"
            )
        return module

    @field_validator("extra_args", mode="before")
    @classmethod
    def parse_extra_args(cls, v: str | list[str]) -> list[str]:
        """Parse extra arguments from comma-separated string or list."""
        return _split_csv(v)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"
    timestamp: bool = Field(default=False)
    color: bool | None = Field(default=None)  # None: detect from TERM
    prefix: str = Field(default="[tsrc]")


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="tsrc")
    app_version: str = Field(default="0.1.0")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    compiler: CompilerSettings = Field(default_factory=CompilerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def watch(self) -> bool:
        """Check if running in continuous watch mode."""
        return self.watcher.enabled

    @property
    def debounce_seconds(self) -> float:
        """Debounce window in seconds."""
        return self.watcher.debounce_delay_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings read from the environment.
    The command line layers its overrides on a copy of this.
    """
    return Settings()
