"""Configuration types for zcpublish."""

from zcpublish.config.publisher_config import (
    DEFAULT_PORT,
    ConfigurationError,
    PublisherConfig,
    parse_module_arguments,
)

__all__ = [
    "DEFAULT_PORT",
    "ConfigurationError",
    "PublisherConfig",
    "parse_module_arguments",
]
