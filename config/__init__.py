"""Configuration management package for cloud-cli"""

from .loader import ConfigLoader, get_config_loader

__all__ = [
    "ConfigLoader",
    "get_config_loader",
]
