from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from revue.domain.constants import (
    DEFAULT_DUE_LIMIT,
    DEFAULT_EASINESS,
    FAST_ANSWER_MS,
    MIN_EASINESS,
    SLOW_ANSWER_MS,
)


def config_file_candidates() -> list[Path]:
    return [
        Path.home() / ".config/revue/config.toml",
        Path.home() / ".revue.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for revue.
    Supports loading from:
    1. Manual overrides (CLI / API)
    2. Environment variables (REVUE_*)
    3. Config file (~/.config/revue/config.toml or ~/.revue.toml)
    """

    model_config = SettingsConfigDict(
        env_prefix="REVUE_",
        extra="ignore",
    )

    # Scheduling
    default_easiness: float = Field(default=DEFAULT_EASINESS, ge=MIN_EASINESS)
    max_interval_days: int | None = Field(default=None, ge=1)

    # Quality estimation
    fast_answer_ms: int = Field(default=FAST_ANSWER_MS, ge=0)
    slow_answer_ms: int = Field(default=SLOW_ANSWER_MS, ge=0)

    # Due selection
    due_limit: int = Field(default=DEFAULT_DUE_LIMIT, ge=1)

    # Paths / output
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/revue/logs")
    verbose: int = 1

    @field_validator("slow_answer_ms")
    @classmethod
    def slow_after_fast(cls, v: int, info: ValidationInfo) -> int:
        fast = info.data.get("fast_answer_ms")
        if fast is not None and v < fast:
            raise ValueError("slow_answer_ms must not be lower than fast_answer_ms")
        return v

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_log_dir(cls, v: Any) -> Path:
        return Path(v).expanduser()

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

        # First existing file wins
        toml_file = next((f for f in config_file_candidates() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/revue/config.toml (if exists)
    3. Environment variables (REVUE_*)
    4. cli_overrides (passed from Typer or the API), None values ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
