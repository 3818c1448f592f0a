"""Candidate filtering and sorting."""

import functools
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from ..models import ServerRecord

log = structlog.stdlib.get_logger()

Comparator = Callable[[ServerRecord, ServerRecord], bool]


def by_ping(a: ServerRecord, b: ServerRecord) -> bool:
    """Lowest ping first."""
    return a.ping < b.ping


def by_ping_descending(a: ServerRecord, b: ServerRecord) -> bool:
    return a.ping > b.ping


def by_player_count(a: ServerRecord, b: ServerRecord) -> bool:
    """Emptiest server first."""
    return a.playing < b.playing


COMPARATORS: dict[str, Comparator] = {
    "ping": by_ping,
    "ping-desc": by_ping_descending,
    "players": by_player_count,
}


def filter_servers(
    raw_servers: Iterable[Any] | None,
    current_instance_id: str | None,
) -> list[ServerRecord]:
    """Drop malformed entries, full servers and the current server.

    Args:
        raw_servers: Entries from the directory ``data`` array
        current_instance_id: Id of the server the player is on, if any

    Returns:
        The remaining servers in their original order
    """
    if raw_servers is None:
        return []

    current = str(current_instance_id) if current_instance_id is not None else None
    servers: list[ServerRecord] = []
    skipped = 0

    for entry in raw_servers:
        try:
            server = ServerRecord.from_payload(entry)
        except ValueError as e:
            skipped += 1
            log.debug("Skipping malformed server entry", reason=str(e))
            continue

        if server.id == current or server.is_full:
            continue
        servers.append(server)

    if skipped:
        log.warning("Dropped malformed server entries", count=skipped)

    return servers


def sort_servers(
    servers: list[ServerRecord],
    compare: Comparator | None = None,
) -> list[ServerRecord]:
    """Sort ``servers`` in place and return the same list.

    ``compare(a, b)`` returns True when ``a`` should come before ``b``.
    The sort is stable, so servers of equal rank keep their relative order.
    """
    precedes = compare or by_ping

    def _cmp(a: ServerRecord, b: ServerRecord) -> int:
        if precedes(a, b):
            return -1
        if precedes(b, a):
            return 1
        return 0

    servers.sort(key=functools.cmp_to_key(_cmp))
    return servers
