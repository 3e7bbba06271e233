"""Configuration management using Pydantic BaseSettings."""
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Data paths
    data_dir: Path = Field(default_factory=lambda: Path("./data"), alias="DATA_DIR")
    out_dir: Path = Field(default_factory=lambda: Path("./out"), alias="OUT_DIR")
    log_dir: Path = Field(default_factory=lambda: Path("./logs"), alias="LOG_DIR")

    # Database
    db_path: Path = Field(
        default_factory=lambda: Path("./data/buyerfit.duckdb"),
        alias="BUYERFIT_DB_PATH"
    )

    # Scoring
    # Used for any tracker weight that is missing or zero
    default_category_weight: int = Field(default=25, alias="DEFAULT_CATEGORY_WEIGHT")
    # Deals with at least this many locations get lenient geography scoring
    multi_location_min: int = Field(default=3, alias="MULTI_LOCATION_MIN")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.out_dir.mkdir(parents=True, exist_ok=True)

    @property
    def duckdb_path(self) -> str:
        """Return DuckDB path as string."""
        return str(self.db_path)


# Global settings instance
settings = Settings()
