"""Configuration data models."""

from dataclasses import dataclass
from enum import Enum


class SortOrder(Enum):
    """Server ordering requested from the directory service."""
    ASCENDING = "Asc"
    DESCENDING = "Desc"


VALID_RESULT_LIMITS: frozenset[int] = frozenset({10, 25, 50, 100})

DEFAULT_API_BASE_URL = "https://games.roblox.com/v1/games/"


@dataclass(frozen=True)
class HopConfig:
    """Snapshot of the server hop settings."""
    max_retries: int = 3
    retry_delay: float = 15.0  # Seconds, only used when rate limited
    api_base_url: str = DEFAULT_API_BASE_URL
    sort_order: SortOrder | None = None  # None = remote default
    result_limit: int | None = None  # None = remote default
    exclude_full_games: bool | None = None  # None = remote default

    def query_params(self) -> dict[str, str]:
        """Query parameters for the options that are explicitly set."""
        params: dict[str, str] = {}
        if self.sort_order is not None:
            params["sortOrder"] = self.sort_order.value
        if self.result_limit is not None:
            params["limit"] = str(self.result_limit)
        if self.exclude_full_games is not None:
            params["excludeFullGames"] = "true" if self.exclude_full_games else "false"
        return params
