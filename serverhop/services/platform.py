"""Collaborators supplied by the game platform."""

from collections import deque
from dataclasses import dataclass
from typing import Protocol

import structlog

log = structlog.stdlib.get_logger()


@dataclass(frozen=True)
class InstanceContext:
    """Identity of the place, server and player the client is running as."""
    place_id: str
    instance_id: str | None = None
    player: str | None = None


class Teleporter(Protocol):
    """Platform handoff primitive.

    Raising, or returning ``False``, means the platform rejected the request.
    Acceptance does not guarantee the player arrives.
    """

    async def teleport(self, place_id: str, instance_id: str, player: str | None) -> bool | None: ...


class DryRunTeleporter:
    """Teleporter that logs the handoff and accepts it.

    Only the most recent ``history`` requests are kept in ``requests``.
    """

    def __init__(self, history: int = 50) -> None:
        self.requests: deque[tuple[str, str, str | None]] = deque(maxlen=history)

    async def teleport(self, place_id: str, instance_id: str, player: str | None) -> bool:
        self.requests.append((place_id, instance_id, player))
        log.info(
            "Dry run handoff accepted",
            place_id=place_id,
            instance_id=instance_id,
            player=player,
        )
        return True
