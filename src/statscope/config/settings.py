"""
StatScope Configuration Settings.

Validated configuration using pydantic-settings.
"""

from typing import Annotated, Literal

from pydantic import BeforeValidator, ConfigDict, Field
from pydantic_settings import BaseSettings


def parse_cors_origins(v):
    """Parse CORS origins from comma-separated string or list."""
    if isinstance(v, str):
        return [origin.strip() for origin in v.split(",") if origin.strip()]
    return v


CorsOriginsList = Annotated[list[str], BeforeValidator(parse_cors_origins)]


class OutlierSettings(BaseSettings):
    """Outlier detection thresholds."""

    iqr_multiplier: float = Field(default=1.5, gt=0)
    z_threshold: float = Field(default=3.0, gt=0)
    modified_z_threshold: float = Field(default=3.5, gt=0)
    modified_z_scale: float = Field(default=0.6745, gt=0)

    model_config = ConfigDict(env_prefix="OUTLIER_")


class CorrelationSettings(BaseSettings):
    """Correlation and confidence interval configuration."""

    confidence_level: float = Field(default=0.95, gt=0, lt=1)
    fisher_clamp: float = Field(default=0.999, gt=0, lt=1)
    min_observations: int = Field(
        default=3,
        ge=3,
        description="Smallest pairwise sample size that yields a real estimate",
    )

    model_config = ConfigDict(env_prefix="CORRELATION_")


class DistributionSettings(BaseSettings):
    """Univariate / bivariate descriptor configuration."""

    kde_points: int = Field(default=200, ge=10, le=5000)
    curve_points: int = Field(default=100, ge=10, le=5000)
    t_degrees_of_freedom: int = Field(default=10, ge=1)
    lowess_frac: float = Field(default=2 / 3, gt=0, le=1)
    max_polynomial_degree: int = Field(default=10, ge=1, le=20)

    model_config = ConfigDict(env_prefix="DISTRIBUTION_")


class RenderSettings(BaseSettings):
    """Figure rendering configuration."""

    dpi: int = Field(default=100, ge=50, le=600)
    figure_width: float = Field(default=6.0, gt=0)
    figure_height: float = Field(default=4.0, gt=0)
    heatmap_cmap: str = Field(default="coolwarm")

    model_config = ConfigDict(env_prefix="RENDER_")


class IngestionSettings(BaseSettings):
    """Upload limits."""

    max_file_size: int = Field(
        default=50 * 1024 * 1024,  # 50MB
        description="Maximum upload file size in bytes",
    )
    allowed_extensions: set[str] = Field(default={".csv", ".xls", ".xlsx"})

    model_config = ConfigDict(env_prefix="INGEST_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    env: Literal["development", "testing", "staging", "production"] = Field(
        default="development"
    )
    debug: bool = Field(default=True)

    # App info
    app_name: str = Field(default="StatScope")
    app_version: str = Field(default="1.0.0")
    api_prefix: str = Field(default="/api/v1")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_logs: bool = Field(default=False)

    # Workflow
    operation_timeout_seconds: float = Field(
        default=120.0,
        ge=0,
        description="Per-operation timeout; 0 runs operations inline without a limit",
    )

    cors_origins: CorsOriginsList = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Subsettings
    outliers: OutlierSettings = Field(default_factory=OutlierSettings)
    correlation: CorrelationSettings = Field(default_factory=CorrelationSettings)
    distribution: DistributionSettings = Field(default_factory=DistributionSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)

    def is_production(self) -> bool:
        return self.env == "production"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global instance
settings = Settings()


def get_settings() -> Settings:
    """Get settings instance (for dependency injection)."""
    return settings
