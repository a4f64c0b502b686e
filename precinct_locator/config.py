"""Configuration management for the Precinct Locator service"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = Field(default="sqlite:///./precinct_locator.db")
    database_echo: bool = Field(default=False)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Resolution Configuration
    # Squared-degree units: 0.0009 is a 0.03 degree radius, roughly 3.3 km
    # north-south and 2.5 km east-west at New York City's latitude (~40.7).
    nearest_max_squared_degrees: float = Field(default=0.0009, ge=0.0)
    derive_missing_sub_zones: bool = Field(default=True)

    # Dataset Configuration
    version_comparison: str = Field(default="semantic")
    required_datasets_str: str = Field(
        default="precincts,sectors,laws,schedules",
        validation_alias="REQUIRED_DATASETS",
    )
    seed_on_startup: bool = Field(default=True)
    seed_data_dir: Optional[str] = Field(default=None, description="Overrides the bundled seed files")
    precincts_version: str = Field(default="1.0.0")
    sectors_version: str = Field(default="1.0.0")
    laws_version: str = Field(default="1.0.0")
    schedules_version: str = Field(default="1.0.0")

    # Rate Limiting
    rate_limit_per_minute: int = Field(default=120)

    # Application Configuration
    app_name: str = "Precinct Locator API"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def get_required_datasets(self) -> List[str]:
        """Parse comma-separated dataset keys"""
        return [key.strip() for key in self.required_datasets_str.split(",") if key.strip()]

    def get_target_versions(self) -> dict:
        """Target seed version for every known dataset"""
        return {
            "precincts": self.precincts_version,
            "sectors": self.sectors_version,
            "laws": self.laws_version,
            "schedules": self.schedules_version,
        }


# Global settings instance
settings = Settings()
