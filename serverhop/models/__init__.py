"""Data models for the server hop client."""

from .config import DEFAULT_API_BASE_URL, VALID_RESULT_LIMITS, HopConfig, SortOrder
from .server import ServerRecord

__all__ = [
    "DEFAULT_API_BASE_URL",
    "HopConfig",
    "ServerRecord",
    "SortOrder",
    "VALID_RESULT_LIMITS",
]
