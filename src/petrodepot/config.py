"""
PetroDepot Configuration Management

Settings are read from environment variables (or a local .env file).
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from petrodepot.models import TankSpec, TankUnit


def _gauged(name: str, capacity: int, kg: int, cm: int) -> TankSpec:
    return TankSpec(name=name, capacity=capacity, kg_per_cm=Decimal(kg) / Decimal(cm))


# kg per cm measured on each gauged tank (kg over a reference height)
DEFAULT_TANKS = (
    _gauged("C1", 250, 27300, 240),
    _gauged("C2", 250, 27300, 240),
    _gauged("C3", 250, 27300, 240),
    _gauged("C4", 250, 27300, 240),
    _gauged("C5", 250, 25000, 240),
    _gauged("C6", 250, 23000, 240),
    _gauged("C7", 250, 23000, 240),
    _gauged("C8", 250, 27300, 240),
    _gauged("C9", 454, 9500, 413),
    _gauged("C10", 200, 9000, 200),
    _gauged("C11", 200, 9000, 200),
    _gauged("C50", 300, 49000, 290),
    _gauged("C60", 300, 59000, 290),
    TankSpec(name="C100-1", capacity=36, unit=TankUnit.TONNE),
    TankSpec(name="C100-2", capacity=64, unit=TankUnit.TONNE),
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # === Database Configuration ===
    database_host: str = Field(default="localhost")
    database_port: int = Field(default=5432)
    database_name: str = Field(default="petrodepot")
    database_user: str = Field(default="petrodepot")
    database_password: str = Field(default="")
    database_ssl_mode: str = Field(default="prefer")
    database_connect_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts when opening the connection pool"
    )

    @property
    def database_url(self) -> str:
        """Construct PostgreSQL connection URL."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
            f"?sslmode={self.database_ssl_mode}"
        )

    # === API Configuration ===
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # === Scheduler Configuration ===
    scheduler_enabled: bool = Field(default=True)
    scheduler_cron_hour: int = Field(default=7, description="Maintenance reminder hour")
    scheduler_cron_minute: int = Field(default=0)
    scheduler_timezone: str = Field(default="Africa/Casablanca")

    # === Logging ===
    log_level: str = Field(default="INFO")

    # === Domain Defaults ===
    kg_per_barrel: Decimal = Field(
        default=Decimal("185"),
        gt=Decimal("0"),
        description="Default kg per barrel (conventionally 182-185)"
    )
    tank_max_level_cm: Decimal = Field(
        default=Decimal("193"),
        gt=Decimal("0"),
        description="Height of the main storage tank used for the fill percentage"
    )
    vat_rate: Decimal = Field(default=Decimal("0.2"), ge=Decimal("0"))

    # Storage tanks (JSON list in PETRODEPOT_TANKS)
    tanks: list[TankSpec] = Field(default_factory=lambda: list(DEFAULT_TANKS))
    main_tank_name: str = Field(default="Sarije", description="Tank tracked by the delivery ledger")
    main_tank_product: str = Field(default="huile_usage")

    # Near-due thresholds for maintenance reminders
    oil_change_due_soon_fraction: Decimal = Field(
        default=Decimal("0.1"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Fraction of the oil change interval flagged as due soon"
    )
    document_due_soon_days: int = Field(
        default=7,
        ge=0,
        description="Days before a document expires that it is flagged as due soon"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PETRODEPOT_",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
