"""
Configuration management for umigen.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Can be configured via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="UMIGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default=Path("data"), description="Where template documents are written")
    output_dir: Path = Field(default=Path("output"), description="Aggregated tables written by the CLI")

    # Report parsing
    missing_value_token: str = Field(default="N/A", description="Token the engine writes for missing values")
    name_separator: str = Field(default="+", description="Separator when joining component names")

    # Energy profiles
    base_year: int = Field(default=2017, description="Calendar year used to resample profiles")
    default_n_bins: int = Field(default=3, description="Default number of discretization bins")

    # Template documents
    json_indent: int = Field(default=2, description="Indentation of written template documents")


# Global settings instance
settings = Settings()
