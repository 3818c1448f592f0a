"""Server selection and handoff driver."""

import asyncio
import random

import structlog

from ..models import ServerRecord
from .candidates import Comparator, by_ping, filter_servers, sort_servers
from .config import ConfigurationService
from .directory import DirectoryFetcher, FetchResult, SleepFunc
from .errors import HandoffError, NoCandidatesError, ServerHopError
from .platform import InstanceContext, Teleporter

log = structlog.stdlib.get_logger()

HOP_TARGET_COUNT = 5
HANDOFF_RETRY_DELAY = 0.5

ServerListResult = tuple[list[ServerRecord] | None, ServerHopError | None]


class ServerHopService:
    """Finds better servers for the current place and hops the player to one.

    The pipeline is fetch, filter, sort, then select. ``hop`` spreads
    callers across the few lowest-ping servers instead of always picking the
    single best one, so a crowd hopping at once does not pile onto one server.
    """

    def __init__(
        self,
        config_service: ConfigurationService,
        fetcher: DirectoryFetcher,
        teleporter: Teleporter,
        context: InstanceContext,
        rng: random.Random | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the server hop service.

        Args:
            config_service: Source of the current configuration
            fetcher: Directory fetcher for raw server lists
            teleporter: Platform handoff primitive
            context: Current place, server and player
            rng: Random source for shuffling hop targets
            sleep: Awaitable sleep used between handoff attempts
        """
        self.config_service = config_service
        self.fetcher = fetcher
        self.teleporter = teleporter
        self.context = context
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.last_targets: list[ServerRecord] = []

    async def fetch_raw(self, place_id: str | int | None = None) -> FetchResult:
        """Fetch the unfiltered server list, by default for the current place."""
        return await self.fetcher.fetch(place_id if place_id is not None else self.context.place_id)

    async def get_available_servers(self) -> ServerListResult:
        """Servers that are neither full nor the current one, in directory order."""
        raw_servers, error = await self.fetch_raw()
        if error is not None:
            return None, error
        return filter_servers(raw_servers, self.context.instance_id), None

    async def get_sorted_list(self, compare: Comparator | None = None) -> ServerListResult:
        """Available servers ordered by ``compare`` (ascending ping by default)."""
        servers, error = await self.get_available_servers()
        if error is not None:
            return None, error
        return sort_servers(servers, compare), None

    async def get_lowest_ping_candidate(self) -> tuple[ServerRecord | None, ServerHopError | None]:
        """The available server with the lowest ping, or ``(None, None)`` if none."""
        servers, error = await self.get_sorted_list(by_ping)
        if error is not None:
            return None, error
        return (servers[0] if servers else None), None

    async def hop(self, player: str | None = None) -> tuple[bool, ServerHopError | None]:
        """Hand the player off to one of the best available servers.

        Args:
            player: Player handle, defaults to the context's player

        Returns:
            ``(True, None)`` once a handoff is accepted, else ``(False, error)``
        """
        player = player if player is not None else self.context.player
        place_id = str(self.context.place_id)
        self.last_targets = []

        log.info(
            "Starting server hop",
            place_id=place_id,
            current_instance=self.context.instance_id,
            player=player,
            result_limit=self.config_service.config.result_limit,
        )

        servers, error = await self.get_sorted_list(by_ping)
        if error is not None:
            log.error("Server hop aborted, fetch failed", error=error.message)
            return False, error

        if not servers:
            log.warning("Server hop aborted, no suitable servers", place_id=place_id)
            return False, NoCandidatesError(place_id=place_id)

        targets = servers[:HOP_TARGET_COUNT]
        self._shuffle(targets)
        self.last_targets = list(targets)

        last_error: Exception | None = None
        last_target: ServerRecord | None = None

        for index, target in enumerate(targets):
            last_target = target
            try:
                accepted = await self.teleporter.teleport(place_id, target.id, player)
                if accepted is False:
                    raise RuntimeError("handoff rejected by platform")
            except Exception as e:
                last_error = e
                log.warning(
                    "Handoff attempt failed",
                    instance_id=target.id,
                    attempt=index + 1,
                    total_targets=len(targets),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                if index < len(targets) - 1:
                    await self._sleep(HANDOFF_RETRY_DELAY)
                continue

            log.info(
                "Handoff initiated",
                instance_id=target.id,
                ping=target.ping,
                playing=target.playing,
                max_players=target.max_players,
                attempt=index + 1,
            )
            return True, None

        log.error("Handoff failed for every target", attempts=len(targets))
        return False, HandoffError(
            attempts=len(targets),
            last_error=last_error,
            instance_id=last_target.id if last_target else None,
        )

    def _shuffle(self, targets: list[ServerRecord]) -> None:
        """Fisher-Yates shuffle in place."""
        for i in range(len(targets) - 1, 0, -1):
            j = self._rng.randint(0, i)
            targets[i], targets[j] = targets[j], targets[i]
