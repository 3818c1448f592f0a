"""Service layer: configuration, directory access, selection and handoff."""

from .candidates import (
    COMPARATORS,
    Comparator,
    by_ping,
    by_ping_descending,
    by_player_count,
    filter_servers,
    sort_servers,
)
from .config import ConfigurationService, ValidationResult, normalize_base_url
from .directory import DirectoryFetcher, is_rate_limited
from .errors import (
    AttemptsExhaustedError,
    ConfigurationError,
    DecodeError,
    ErrorCategory,
    ErrorSeverity,
    FormatError,
    HandoffError,
    NoCandidatesError,
    RateLimitedError,
    ServerHopError,
    TransportError,
    UserFriendlyError,
    create_user_message,
)
from .hopper import HOP_TARGET_COUNT, ServerHopService
from .http_client import HttpClientService
from .platform import DryRunTeleporter, InstanceContext, Teleporter

__all__ = [
    "AttemptsExhaustedError",
    "COMPARATORS",
    "Comparator",
    "ConfigurationError",
    "ConfigurationService",
    "DecodeError",
    "DirectoryFetcher",
    "DryRunTeleporter",
    "ErrorCategory",
    "ErrorSeverity",
    "FormatError",
    "HOP_TARGET_COUNT",
    "HandoffError",
    "HttpClientService",
    "InstanceContext",
    "NoCandidatesError",
    "RateLimitedError",
    "ServerHopError",
    "ServerHopService",
    "Teleporter",
    "TransportError",
    "UserFriendlyError",
    "ValidationResult",
    "by_ping",
    "by_ping_descending",
    "by_player_count",
    "create_user_message",
    "filter_servers",
    "is_rate_limited",
    "normalize_base_url",
    "sort_servers",
]
