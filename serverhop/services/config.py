"""Configuration service for managing server hop settings."""

import dataclasses
import json
import math
from pathlib import Path
from typing import Any

import structlog

from ..models import VALID_RESULT_LIMITS, HopConfig, SortOrder

log = structlog.stdlib.get_logger()

_OPTIONAL_FIELDS = frozenset({"sort_order", "result_limit", "exclude_full_games"})

_SORT_ORDER_ALIASES = {
    "asc": SortOrder.ASCENDING,
    "ascending": SortOrder.ASCENDING,
    "desc": SortOrder.DESCENDING,
    "descending": SortOrder.DESCENDING,
}


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


def normalize_base_url(url: str) -> str:
    """Strip whitespace and make sure the URL ends with a path separator."""
    url = url.strip()
    if not url.endswith("/"):
        url += "/"
    return url


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_max_retries(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError("max_retries must be a non-negative integer")
    return value


def _parse_retry_delay(value: Any) -> float:
    if not _is_number(value):
        raise ValueError("retry_delay must be a positive number")
    try:
        delay = float(value)
    except OverflowError:
        raise ValueError("retry_delay is too large") from None
    if not math.isfinite(delay) or delay <= 0:
        raise ValueError("retry_delay must be a positive finite number")
    return delay


def _parse_api_base_url(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("api_base_url must be a non-empty string")
    return normalize_base_url(value)


def _parse_sort_order(value: Any) -> SortOrder | None:
    if value is None or isinstance(value, SortOrder):
        return value
    if isinstance(value, str) and value.strip().lower() in _SORT_ORDER_ALIASES:
        return _SORT_ORDER_ALIASES[value.strip().lower()]
    raise ValueError("sort_order must be one of: Asc, Desc")


def _parse_result_limit(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool) and value in VALID_RESULT_LIMITS:
        return value
    limits = ", ".join(str(limit) for limit in sorted(VALID_RESULT_LIMITS))
    raise ValueError(f"result_limit must be one of: {limits}")


def _parse_exclude_full_games(value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ValueError("exclude_full_games must be true, false or null")


_PARSERS = {
    "max_retries": _parse_max_retries,
    "retry_delay": _parse_retry_delay,
    "api_base_url": _parse_api_base_url,
    "sort_order": _parse_sort_order,
    "result_limit": _parse_result_limit,
    "exclude_full_games": _parse_exclude_full_games,
}


class ConfigurationService:
    """Service holding the current server hop configuration.

    The configuration is an immutable ``HopConfig`` snapshot. ``configure``
    replaces the whole snapshot at once, so readers that grab ``config`` at
    the start of an operation always see one consistent set of values.
    """

    def __init__(self, config: HopConfig | None = None) -> None:
        self._config: HopConfig = config or HopConfig()
        log.info("Configuration service initialized", **self._describe(self._config))

    @property
    def config(self) -> HopConfig:
        """Get the current configuration snapshot."""
        return self._config

    def configure(self, /, **options: Any) -> ValidationResult:
        """Apply the valid subset of ``options``.

        Invalid or unknown options keep their prior value and are reported in
        the returned result; this method never raises.
        """
        return self._apply(options)

    def _apply(self, options: dict[str, Any]) -> ValidationResult:
        accepted, errors = self._validate(options)

        for message in errors:
            log.warning("Configuration option rejected", reason=message)

        if accepted:
            self._config = dataclasses.replace(self._config, **accepted)
            log.info("Configuration updated", **self._describe(self._config))

        return ValidationResult(len(errors) == 0, errors)

    def validate_options(self, options: dict[str, Any]) -> ValidationResult:
        """Validate options without applying them."""
        _, errors = self._validate(options)
        return ValidationResult(len(errors) == 0, errors)

    def load_options(self, path: Path) -> ValidationResult:
        """Read a JSON object of options from ``path`` and apply it."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.error("Failed to load configuration file", path=str(path), error=str(e))
            return ValidationResult(False, [f"could not read {path}: {e}"])

        if not isinstance(data, dict):
            log.error("Configuration file is not a JSON object", path=str(path))
            return ValidationResult(False, [f"{path} must contain a JSON object"])

        log.info("Configuration file loaded", path=str(path), options=sorted(data))
        return self._apply(data)

    def reset(self) -> None:
        """Restore the default configuration."""
        self._config = HopConfig()
        log.info("Configuration reset to defaults")

    @staticmethod
    def _validate(options: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
        accepted: dict[str, Any] = {}
        errors: list[str] = []

        for name, value in options.items():
            parser = _PARSERS.get(name)
            if parser is None:
                errors.append(f"unknown option: {name}")
                continue
            if value is None and name not in _OPTIONAL_FIELDS:
                errors.append(f"{name} cannot be null")
                continue
            try:
                accepted[name] = parser(value)
            except ValueError as e:
                errors.append(f"{e} (got {value!r})")

        return accepted, errors

    @staticmethod
    def _describe(config: HopConfig) -> dict[str, Any]:
        return {
            "max_retries": config.max_retries,
            "retry_delay": config.retry_delay,
            "api_base_url": config.api_base_url,
            "sort_order": config.sort_order.value if config.sort_order else None,
            "result_limit": config.result_limit,
            "exclude_full_games": config.exclude_full_games,
        }
