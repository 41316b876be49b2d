"""Configuration module for scenery."""

from scenery.config.loader import ConfigFileError, load_config, save_config
from scenery.config.schema import ReportConfig, SceneryConfig, TraceConfig, TransportConfig

__all__ = [
    "ConfigFileError",
    "load_config",
    "save_config",
    "ReportConfig",
    "SceneryConfig",
    "TraceConfig",
    "TransportConfig",
]
