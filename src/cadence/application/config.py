from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import (
    MAX_CARDS_PER_SESSION,
    MAX_SESSIONS_PER_DAY,
    MINUTES_PER_CARD,
)

DEFAULT_DECK_NAME = "deck.yaml"


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/cadence/config.toml",
        Path.home() / ".cadence.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Paths
    deck_path: Path | None = None

    # Study planner
    max_cards_per_session: int = Field(default=MAX_CARDS_PER_SESSION, gt=0)
    minutes_per_card: float = Field(default=MINUTES_PER_CARD, gt=0)
    max_sessions_per_day: int = Field(default=MAX_SESSIONS_PER_DAY, gt=0)
    session_limit: int | None = Field(default=None, gt=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8778

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

        # First existing config file wins
        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Earlier sources take priority: init > env > toml
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

    @field_validator("deck_path", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.deck_path is None:
        config.deck_path = (Path.cwd() / DEFAULT_DECK_NAME).resolve()

    return config
