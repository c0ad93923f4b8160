"""
Configuration for the engine and the CLI host.

EngineConfig is the closed record handed to the engine. AppConfig resolves
host settings from the environment and an optional TOML file.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from ritmo.application.curves import default_base_interval, default_level_table
from ritmo.domain.constants import (
    DEFAULT_DIFFICULTY_MULTIPLIERS,
    DEFAULT_RISK_HOUR,
    DEFAULT_XP_BASE,
    EASE_CEILING,
    EASE_FLOOR,
    INITIAL_EASE,
    PARTIAL_CREDIT_FACTOR,
)
from ritmo.domain.progression.models import LevelBand

CONFIG_FILES = [
    Path.home() / ".config/ritmo/config.toml",
    Path.home() / ".ritmo.toml",
]


class EngineConfig(BaseModel):
    """
    Tuning knobs for one engine instance.

    Unknown fields and out-of-range values are rejected at construction.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        allow_inf_nan=False,
        arbitrary_types_allowed=True,
    )

    risk_hour: int = Field(default=DEFAULT_RISK_HOUR, ge=0, le=23)
    ease_floor: float = Field(default=EASE_FLOOR, gt=0)
    ease_ceiling: float = EASE_CEILING
    initial_ease: float = INITIAL_EASE
    level_table: tuple[LevelBand, ...] = Field(default_factory=default_level_table)
    base_interval: Callable[[float], int] = default_base_interval

    # XP rewards
    xp_base: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_XP_BASE))
    difficulty_multipliers: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_DIFFICULTY_MULTIPLIERS)
    )
    partial_credit_factor: float = Field(default=PARTIAL_CREDIT_FACTOR, ge=0, le=1)

    @field_validator("xp_base")
    @classmethod
    def check_xp_base(cls, v: dict[str, int]) -> dict[str, int]:
        for kind, xp in v.items():
            if xp < 0:
                raise ValueError(f"Base XP for {kind!r} must be non-negative")
        return v

    @field_validator("difficulty_multipliers")
    @classmethod
    def check_multipliers(cls, v: dict[str, float]) -> dict[str, float]:
        for difficulty, multiplier in v.items():
            if multiplier < 0:
                raise ValueError(f"Multiplier for {difficulty!r} must be non-negative")
        return v

    @field_validator("level_table")
    @classmethod
    def check_level_table(cls, v: tuple[LevelBand, ...]) -> tuple[LevelBand, ...]:
        if not v:
            raise ValueError("Level table must not be empty")
        if v[0].min_xp != 0:
            raise ValueError("Level table must start at 0 XP")
        for band, following in zip(v, v[1:]):
            if band.max_xp is None or band.max_xp != following.min_xp:
                raise ValueError(f"Level table has a gap or overlap after {band}")
            if band.max_xp <= band.min_xp:
                raise ValueError(f"Level band {band} is empty")
        if v[-1].max_xp is not None:
            raise ValueError("The last level band must be unbounded")
        return v

    @model_validator(mode="after")
    def check_ease_bounds(self) -> "EngineConfig":
        if self.ease_ceiling <= self.ease_floor:
            raise ValueError("ease_ceiling must be greater than ease_floor")
        if not self.ease_floor <= self.initial_ease <= self.ease_ceiling:
            raise ValueError("initial_ease must lie within [ease_floor, ease_ceiling]")
        return self


class AppConfig(BaseSettings):
    """
    Host configuration for the CLI.
    Supports loading from:
    1. Manual overrides (CLI)
    2. Environment variables (RITMO_*)
    3. Config file (~/.config/ritmo/config.toml)
    """

    model_config = SettingsConfigDict(
        env_prefix="RITMO_",
        toml_file=CONFIG_FILES,
        extra="forbid",
    )

    state_file: Path = Path("ritmo_state.yaml")
    learner_id: str = "default"

    # Engine tuning
    risk_hour: int = Field(default=DEFAULT_RISK_HOUR, ge=0, le=23)
    ease_floor: float = EASE_FLOOR
    ease_ceiling: float = EASE_CEILING

    verbose: int = 1

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
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("state_file", mode="before")
    @classmethod
    def expand_state_file(cls, v: Any) -> Path:
        return Path(v).expanduser()

    def to_engine_config(self) -> EngineConfig:
        return EngineConfig(
            risk_hour=self.risk_hour,
            ease_floor=self.ease_floor,
            ease_ceiling=self.ease_ceiling,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/ritmo/config.toml (if exists)
    3. Environment variables (RITMO_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
