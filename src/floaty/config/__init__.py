"""Configuration loading and resolution."""

from floaty.config.loader import read_config
from floaty.config.resolver import get_vmpooler_service_config, resolve_service_config

__all__ = [
    "read_config",
    "resolve_service_config",
    "get_vmpooler_service_config",
]
