"""Cloud platform REST API client"""

from .client import API, PlatformClient

__all__ = [
    "API",
    "PlatformClient",
]
