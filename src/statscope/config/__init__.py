"""StatScope configuration."""

from .settings import (
    CorrelationSettings,
    DistributionSettings,
    IngestionSettings,
    OutlierSettings,
    RenderSettings,
    Settings,
    get_settings,
    settings,
)

__all__ = [
    "CorrelationSettings",
    "DistributionSettings",
    "IngestionSettings",
    "OutlierSettings",
    "RenderSettings",
    "Settings",
    "get_settings",
    "settings",
]
