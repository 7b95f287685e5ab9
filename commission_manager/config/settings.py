"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from commission_manager.config.business_constants import REFERRAL_LEVEL_OFFSET


SUPPORTED_COMMISSION_MODES = ("flat_level", "referral_chain")

SUPPORTED_DATABASE_SCHEMES = (
    "postgresql://",
    "postgresql+asyncpg://",
    "sqlite+aiosqlite://",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated daily)"
    )

    # Commission calculation
    commission_modes: str = Field(
        default="referral_chain",
        description=(
            "Comma-separated active modes: flat_level, referral_chain"
        )
    )
    referral_level_offset: int = Field(
        default=REFERRAL_LEVEL_OFFSET,
        ge=-10,
        le=10,
        description="Offset added to chain depth to find the referral level"
    )
    max_referral_depth: int | None = Field(
        default=None,
        gt=0,
        description="Hard bound on referral chain length (default: person count)"
    )

    # Display
    currency_symbol: str = "$"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(SUPPORTED_DATABASE_SCHEMES):
            raise ValueError(
                "DATABASE_URL must start with one of: "
                + ", ".join(SUPPORTED_DATABASE_SCHEMES)
            )
        if v.startswith("postgresql://"):
            # Async engine requires the asyncpg driver
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("commission_modes")
    @classmethod
    def validate_commission_modes(cls, v: str) -> str:
        """Validate comma-separated commission modes."""
        modes = [m.strip() for m in v.split(",") if m.strip()]
        if not modes:
            raise ValueError("COMMISSION_MODES must name at least one mode")

        unknown = [m for m in modes if m not in SUPPORTED_COMMISSION_MODES]
        if unknown:
            raise ValueError(
                f"Unknown commission mode(s): {', '.join(unknown)}. "
                f"Supported: {', '.join(SUPPORTED_COMMISSION_MODES)}"
            )
        return ",".join(modes)

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    def get_commission_modes(self) -> tuple[str, ...]:
        """Parse active commission modes, preserving declaration order."""
        modes: list[str] = []
        for mode in self.commission_modes.split(","):
            mode = mode.strip()
            if mode and mode not in modes:
                modes.append(mode)
        return tuple(modes)


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
