"""Error types for the server hop pipeline.

This module provides:
- Exception classes for each failure category (transport, rate limiting,
  decoding, response format, empty candidate list, handoff)
- User-friendly error representations with suggested actions

Pipeline operations return these as values in ``(result, error)`` pairs
rather than raising them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    DECODE = "decode"
    FORMAT = "format"
    NO_CANDIDATES = "no_candidates"
    HANDOFF = "handoff"
    CONFIGURATION = "configuration"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


def _describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


class ServerHopError(Exception):
    """Base exception class for server hop errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class TransportError(ServerHopError):
    """The directory could not be reached after every attempt."""

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        url: str | None = None,
    ) -> None:
        technical_details = None
        if original_error:
            technical_details = _describe(original_error)
        if url:
            technical_details = f"URL: {url}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message=message,
            category=ErrorCategory.TRANSPORT,
            suggested_actions=[
                "Check your internet connection",
                "Verify the API base URL is correct",
                "Try again in a few moments",
            ],
            technical_details=technical_details,
        )
        self.original_error = original_error
        self.url = url


class AttemptsExhaustedError(TransportError):
    """No request was made because no attempts were allowed."""

    def __init__(self, url: str | None = None, max_retries: int = 0) -> None:
        super().__init__(
            f"All {max_retries} attempts exhausted without a response",
            url=url,
        )
        self.suggested_actions = ["Set max_retries to at least 1"]
        self.max_retries = max_retries


class RateLimitedError(ServerHopError):
    """The directory kept answering with HTTP 429."""

    def __init__(
        self,
        url: str | None = None,
        attempts: int = 0,
        retry_delay: float = 0.0,
    ) -> None:
        technical_details = f"Attempts: {attempts}, retry delay: {retry_delay}s"
        if url:
            technical_details = f"URL: {url}\n{technical_details}"

        super().__init__(
            message=f"Rate limited by the directory service after {attempts} attempts",
            category=ErrorCategory.RATE_LIMITED,
            suggested_actions=[
                "Wait a few minutes before retrying",
                "Increase retry_delay or max_retries",
            ],
            technical_details=technical_details,
        )
        self.url = url
        self.attempts = attempts
        self.retry_delay = retry_delay


class DecodeError(ServerHopError):
    """The directory answered with something that is not JSON."""

    def __init__(
        self,
        original_error: BaseException | None = None,
        url: str | None = None,
    ) -> None:
        technical_details = _describe(original_error) if original_error else None
        if url:
            technical_details = f"URL: {url}" + (f"\n{technical_details}" if technical_details else "")

        super().__init__(
            message="Failed to decode the directory response as JSON",
            category=ErrorCategory.DECODE,
            suggested_actions=[
                "Verify the API base URL points at the server directory",
                "Try again later",
            ],
            technical_details=technical_details,
        )
        self.original_error = original_error
        self.url = url


class FormatError(ServerHopError):
    """The directory answered with JSON that lacks the server list."""

    def __init__(self, reason: str, url: str | None = None) -> None:
        super().__init__(
            message=f"Malformed directory response: {reason}",
            category=ErrorCategory.FORMAT,
            suggested_actions=[
                "Verify the API base URL points at the server directory",
                "Check that the place id is correct",
            ],
            technical_details=f"URL: {url}" if url else None,
        )
        self.reason = reason
        self.url = url


class NoCandidatesError(ServerHopError):
    """Nothing is left to hop to after filtering."""

    def __init__(self, place_id: str | None = None) -> None:
        super().__init__(
            message="No suitable servers found",
            category=ErrorCategory.NO_CANDIDATES,
            severity=ErrorSeverity.WARNING,
            suggested_actions=[
                "Try again later when servers have free slots",
                "Raise the result limit to see more servers",
            ],
            technical_details=f"Place: {place_id}" if place_id else None,
        )
        self.place_id = place_id


class HandoffError(ServerHopError):
    """Every attempted handoff target rejected the player."""

    def __init__(
        self,
        attempts: int,
        last_error: BaseException | None = None,
        instance_id: str | None = None,
    ) -> None:
        message = f"Handoff failed for all {attempts} target servers"
        if last_error is not None:
            message = f"{message}: {last_error}"

        technical_details = None
        if instance_id:
            technical_details = f"Last target: {instance_id}"
        if last_error is not None:
            technical_details = (technical_details + "\n" if technical_details else "") + _describe(last_error)

        super().__init__(
            message=message,
            category=ErrorCategory.HANDOFF,
            suggested_actions=[
                "Try hopping again",
                "The target servers may have filled up in the meantime",
            ],
            technical_details=technical_details,
        )
        self.attempts = attempts
        self.last_error = last_error
        self.instance_id = instance_id


class ConfigurationError(ServerHopError):
    """Exception for configuration problems that stop a command."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = ["Check the configuration settings"]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


def create_user_message(
    error: ServerHopError | UserFriendlyError,
    include_suggestions: bool = True,
) -> str:
    """Create a formatted user message from an error.

    Args:
        error: The error or its user-friendly representation
        include_suggestions: Whether to include suggested actions

    Returns:
        Formatted message string
    """
    if isinstance(error, ServerHopError):
        error = error.to_user_friendly()

    parts = [error.message]

    if include_suggestions and error.suggested_actions:
        parts.append("\nSuggested actions:")
        for action in error.suggested_actions[:3]:  # Limit to 3 suggestions
            parts.append(f"  • {action}")

    return "\n".join(parts)

