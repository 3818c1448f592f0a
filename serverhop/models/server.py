"""Server-related data models."""

import math
from dataclasses import dataclass
from typing import Any


def _non_negative_int(entry: dict[str, Any], key: str) -> int:
    value = entry[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be an integer, got {value}")
    if value < 0:
        raise ValueError(f"{key} must be non-negative, got {value}")
    return int(value)


@dataclass(frozen=True)
class ServerRecord:
    """One joinable game instance as reported by the directory."""
    id: str
    ping: float
    playing: int
    max_players: int

    @property
    def is_full(self) -> bool:
        return self.playing >= self.max_players

    @classmethod
    def from_payload(cls, entry: Any) -> "ServerRecord":
        """Build a record from a directory JSON object.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(entry, dict):
            raise ValueError(f"server entry must be an object, got {type(entry).__name__}")

        missing = [key for key in ("id", "ping", "playing", "maxPlayers") if key not in entry]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")

        server_id = entry["id"]
        if isinstance(server_id, bool) or not isinstance(server_id, (str, int)):
            raise ValueError(f"id must be a string, got {type(server_id).__name__}")
        if server_id == "":
            raise ValueError("id cannot be empty")

        ping = entry["ping"]
        if isinstance(ping, bool) or not isinstance(ping, (int, float)):
            raise ValueError(f"ping must be a number, got {type(ping).__name__}")
        try:
            ping = float(ping)
        except OverflowError:
            raise ValueError("ping is too large") from None
        if not math.isfinite(ping) or ping < 0:
            raise ValueError(f"ping must be a non-negative finite number, got {ping}")

        return cls(
            id=str(server_id),
            ping=ping,
            playing=_non_negative_int(entry, "playing"),
            max_players=_non_negative_int(entry, "maxPlayers"),
        )
