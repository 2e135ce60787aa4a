from .loader import ConfigError, DatabaseConfig, FuzzyMatchConfig, ImportConfig, load_config

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "FuzzyMatchConfig",
    "ImportConfig",
    "load_config",
]
