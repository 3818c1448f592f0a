"""Command-line entry point for serverhop.

This module provides:
- Command-line argument parsing
- Service wiring with lazy initialization
- The ``list``, ``best`` and ``hop`` commands
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .models import VALID_RESULT_LIMITS, ServerRecord
from .services.candidates import COMPARATORS
from .services.config import ConfigurationService
from .services.directory import DirectoryFetcher
from .services.errors import ConfigurationError, ServerHopError, create_user_message
from .services.hopper import ServerHopService
from .services.http_client import HttpClientService
from .services.logging import setup_logging
from .services.platform import DryRunTeleporter, InstanceContext, Teleporter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class ApplicationContext:
    """Container for the services one command needs."""

    def __init__(
        self,
        instance: InstanceContext,
        timeout: float = 30.0,
        teleporter: Teleporter | None = None,
    ) -> None:
        self.instance: InstanceContext = instance
        self._timeout: float = timeout
        self._teleporter: Teleporter | None = teleporter

        self._config_service: ConfigurationService | None = None
        self._http_client: HttpClientService | None = None
        self._fetcher: DirectoryFetcher | None = None
        self._hopper: ServerHopService | None = None

    @property
    def config_service(self) -> ConfigurationService:
        if self._config_service is None:
            self._config_service = ConfigurationService()
        return self._config_service

    @property
    def http_client(self) -> HttpClientService:
        if self._http_client is None:
            self._http_client = HttpClientService(timeout=self._timeout)
        return self._http_client

    @property
    def fetcher(self) -> DirectoryFetcher:
        if self._fetcher is None:
            self._fetcher = DirectoryFetcher(self.http_client, self.config_service)
        return self._fetcher

    @property
    def teleporter(self) -> Teleporter:
        if self._teleporter is None:
            self._teleporter = DryRunTeleporter()
        return self._teleporter

    @property
    def hopper(self) -> ServerHopService:
        if self._hopper is None:
            self._hopper = ServerHopService(
                config_service=self.config_service,
                fetcher=self.fetcher,
                teleporter=self.teleporter,
                context=self.instance,
            )
        return self._hopper

    async def cleanup(self) -> None:
        """Close network resources."""
        if self._http_client is not None:
            await self._http_client.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="serverhop",
        description="Find and hop between servers of a game place",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  serverhop list 1818                         List joinable servers
  serverhop --limit 100 list 1818 --sort ping List servers by ping
  serverhop best 1818 --current-instance abc  Show the best other server
  serverhop hop 1818 --current-instance abc   Dry-run a hop
        """
    )

    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _ = parser.add_argument("--config", type=Path, default=None, help="JSON file with configuration options")
    _ = parser.add_argument("--max-retries", type=int, default=None, help="Attempts per directory fetch (default: 3)")
    _ = parser.add_argument("--retry-delay", type=float, default=None, help="Seconds to wait when rate limited (default: 15)")
    _ = parser.add_argument("--api-base-url", default=None, help="Directory service base URL")
    _ = parser.add_argument("--sort-order", choices=["Asc", "Desc"], default=None, help="Order requested from the directory")
    _ = parser.add_argument(
        "--limit",
        type=int,
        choices=sorted(VALID_RESULT_LIMITS),
        default=None,
        help="Number of servers requested from the directory",
    )
    exclude = parser.add_mutually_exclusive_group()
    _ = exclude.add_argument("--exclude-full", dest="exclude_full_games", action="store_const", const=True, default=None,
                             help="Ask the directory to leave out full servers")
    _ = exclude.add_argument("--include-full", dest="exclude_full_games", action="store_const", const=False,
                             help="Ask the directory to include full servers")
    _ = parser.add_argument("--timeout", type=float, default=30.0, help="HTTP timeout in seconds (default: 30)")
    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set the logging level (default: WARNING)"
    )
    _ = parser.add_argument("--log-dir", type=Path, default=None, help="Directory for log files")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List joinable servers")
    _add_instance_arguments(list_parser)
    _ = list_parser.add_argument("--sort", choices=sorted(COMPARATORS), default=None, help="Sort the list locally")

    best_parser = subparsers.add_parser("best", help="Show the lowest-ping joinable server")
    _add_instance_arguments(best_parser)

    hop_parser = subparsers.add_parser("hop", help="Hop to one of the best servers (dry run)")
    _add_instance_arguments(hop_parser)
    _ = hop_parser.add_argument("--player", default=None, help="Player to hand off")

    return parser


def _add_instance_arguments(parser: argparse.ArgumentParser) -> None:
    _ = parser.add_argument("place_id", help="Place (game) id")
    _ = parser.add_argument("--current-instance", default=None, help="Id of the server you are on")


def collect_options(args: argparse.Namespace) -> dict[str, Any]:
    """Configuration options given on the command line."""
    candidates = {
        "max_retries": args.max_retries,
        "retry_delay": args.retry_delay,
        "api_base_url": args.api_base_url,
        "sort_order": args.sort_order,
        "result_limit": args.limit,
        "exclude_full_games": args.exclude_full_games,
    }
    return {name: value for name, value in candidates.items() if value is not None}


def format_server(server: ServerRecord) -> str:
    return f"{server.id}  ping={server.ping:g}ms  players={server.playing}/{server.max_players}"


async def run_command(context: ApplicationContext, args: argparse.Namespace) -> int:
    """Run the selected command and print its result."""
    try:
        if args.command == "list":
            compare = COMPARATORS[args.sort] if args.sort else None
            if compare is None:
                servers, error = await context.hopper.get_available_servers()
            else:
                servers, error = await context.hopper.get_sorted_list(compare)
            if error is not None:
                return _report(error)
            for server in servers or []:
                print(format_server(server))
            if not servers:
                print("No joinable servers found")
            return EXIT_OK

        if args.command == "best":
            server, error = await context.hopper.get_lowest_ping_candidate()
            if error is not None:
                return _report(error)
            print(format_server(server) if server else "No joinable servers found")
            return EXIT_OK

        ok, error = await context.hopper.hop(args.player)
        if not ok:
            return _report(error)
        print(f"Handoff initiated to one of {len(context.hopper.last_targets)} best servers")
        return EXIT_OK

    finally:
        await context.cleanup()


def _report(error: ServerHopError | None) -> int:
    if error is not None:
        print(create_user_message(error), file=sys.stderr)
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)

    if args.timeout <= 0:
        _ = _report(ConfigurationError(
            "HTTP timeout must be positive",
            setting="timeout",
            current_value=args.timeout,
            expected="a number of seconds greater than 0",
        ))
        return EXIT_USAGE

    log = setup_logging(log_level=args.log_level, log_dir=args.log_dir).get_logger(__name__)
    log.info("Starting serverhop", version=__version__, command=args.command)

    context = ApplicationContext(
        instance=InstanceContext(
            place_id=args.place_id,
            instance_id=args.current_instance,
            player=getattr(args, "player", None),
        ),
        timeout=args.timeout,
    )

    rejected: list[str] = []
    if args.config is not None:
        rejected += context.config_service.load_options(args.config).errors
    rejected += context.config_service.configure(**collect_options(args)).errors
    for message in rejected:
        print(f"warning: ignoring option: {message}", file=sys.stderr)

    try:
        exit_code = asyncio.run(run_command(context, args))
    except KeyboardInterrupt:
        log.info("Interrupted by user")
        exit_code = EXIT_INTERRUPTED

    log.info("Exiting", exit_code=exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
