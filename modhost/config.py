"""modhost — Host configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. System config: /etc/modhost/config.yaml
    3. User config:   ~/.modhost/config.yaml
    4. An explicit config file passed to ``Settings.load()``
    5. Environment variables prefixed with MODHOST_

Call ``Settings.load()`` once at process startup, or let ``get_settings()``
do it lazily on first use.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MODULE_DIR = "modules"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class ModuleConfig(BaseModel):
    directory: Path = Field(
        default=Path(MODULE_DIR),
        description="Directory whose regular files are scanned as module archives at startup.",
    )
    auto_activate: bool = Field(
        default=True,
        description=(
            "Enable admitted modules in dependency order as soon as an "
            "ActivationEngine is created.  When false, modules are only "
            "instantiated and version-checked; call activate() explicitly."
        ),
    )
    create_directory: bool = Field(
        default=True,
        description="Create the module directory when it does not exist.",
    )
    discover_entry_points: bool = False
    entry_point_group: str = Field(
        default="modhost.modules",
        description="Entry-point group scanned for installed module distributions.",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def expand_directory(cls, v: object) -> object:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class HostConfig(BaseModel):
    version: str | None = Field(
        default=None,
        description="Host version reported to the version gate. None = package version.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["console", "json"] = "console"
    log_file: str | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MODHOST_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    modules: ModuleConfig = Field(default_factory=ModuleConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/modhost/config.yaml"),
            Path.home() / ".modhost" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)

    def effective_host_version(self) -> str:
        """Return the configured host version, or the package version."""
        if self.host.version:
            return self.host.version
        from modhost import __version__

        return __version__


# Module-level singleton — replaced by ``Settings.load()`` at startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings | None) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
