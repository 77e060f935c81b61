"""Upstream query collaborators and their failure taxonomy."""

import time
from typing import Awaitable, Callable

from app.models import FailureReason, StatusRecord

StatusQuery = Callable[[], Awaitable[StatusRecord]]


def now_ms() -> int:
    return int(time.time() * 1000)


class UpstreamError(Exception):
    """Raised by a query collaborator; the relay turns it into a failure value."""

    reason: FailureReason = FailureReason.UPSTREAM_UNREACHABLE

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason.value)
        self.message = message or self.reason.value


class ConfigurationMissingError(UpstreamError):
    reason = FailureReason.CONFIGURATION_MISSING


class UpstreamUnreachableError(UpstreamError):
    reason = FailureReason.UPSTREAM_UNREACHABLE


class UpstreamTimeoutError(UpstreamError):
    reason = FailureReason.UPSTREAM_TIMEOUT


class UpstreamMalformedResponseError(UpstreamError):
    reason = FailureReason.UPSTREAM_MALFORMED_RESPONSE


def finite_number(value, default: float = 0) -> float:
    """Return value when it is a finite, non-negative number, else default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value != value or value in (float("inf"), float("-inf")) or value < 0:
        return default
    return value


def safe_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
