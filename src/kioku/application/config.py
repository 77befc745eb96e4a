from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from kioku.domain.constants import DEFAULT_DUE_LIMIT

def config_files() -> list[Path]:
    return [
        Path.home() / ".config/kioku/config.toml",
        Path.home() / ".kioku.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for kioku.
    Supports loading from:
    1. Environment variables (KIOKU_*)
    2. Config file (~/.config/kioku/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="KIOKU_",
        extra="ignore",
    )

    # Paths
    db_path: Path = Field(default_factory=lambda: Path.home() / ".config/kioku/kioku.db")

    # Scheduling
    user_id: str = "local"
    policy: Literal["fine", "coarse"] = "fine"
    due_limit: int = DEFAULT_DUE_LIMIT

    # Persistence
    save_retries: int = Field(default=2, ge=0)

    # Logging: 0 warnings only, 1 info, 2+ debug
    verbose: int = Field(default=1, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        # Earlier sources take priority: CLI > env > file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("db_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/kioku/config.toml (if exists)
    3. Environment variables (KIOKU_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
