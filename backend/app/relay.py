"""Single-flight TTL cache in front of a slow upstream status query."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from app.models import FailureReason, StatusErrorResponse, StatusOkResponse, StatusRecord
from app.services import StatusQuery, UpstreamError, now_ms

logger = logging.getLogger("tfb.relay")


@dataclass(frozen=True)
class RelayOk:
    record: StatusRecord
    fetched_at: int
    ok: bool = True


@dataclass(frozen=True)
class RelayError:
    reason: FailureReason
    detail: str = ""
    ok: bool = False


RelayOutcome = Union[RelayOk, RelayError]


def status_payload(outcome: RelayOutcome, *, timestamp: int) -> dict[str, Any]:
    """Encode an outcome in the shape polling clients parse.

    Successful payloads carry the fetch time; failures carry ``timestamp``.
    """
    if isinstance(outcome, RelayOk):
        body = StatusOkResponse(timestamp=outcome.fetched_at, state=outcome.record)
    else:
        body = StatusErrorResponse(timestamp=timestamp, error=outcome.reason.value)
    return body.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class _CacheEntry:
    record: StatusRecord
    fetched_at: int


class Relay:
    """Serve the latest upstream record, issuing at most one query at a time.

    Concurrent callers that miss the cache share the in-flight query and all
    receive the same outcome object. Only successful queries are cached.
    """

    def __init__(
        self,
        query: StatusQuery,
        *,
        ttl_ms: int,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._query = query
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._lock = asyncio.Lock()
        self._entry: _CacheEntry | None = None
        self._inflight: asyncio.Task[RelayOutcome] | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    def now(self) -> int:
        return self._clock()

    def remaining_ttl_ms(self, fetched_at: int) -> int:
        return max(0, fetched_at + self._ttl_ms - self._clock())

    def clear(self) -> None:
        """Reset hook: drop the cached entry. An in-flight query is left alone."""
        self._entry = None

    def _fresh_entry(self) -> _CacheEntry | None:
        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl_ms:
            return None
        return entry

    async def get_status(self) -> RelayOutcome:
        async with self._lock:
            # No await between the freshness check and task creation.
            entry = self._fresh_entry()
            if entry is not None:
                return RelayOk(record=entry.record, fetched_at=entry.fetched_at)
            task = self._inflight
            if task is None:
                task = asyncio.get_running_loop().create_task(self._refresh(), name="relay-upstream-query")
                self._inflight = task
        return await asyncio.shield(task)

    async def _refresh(self) -> RelayOutcome:
        try:
            record = await self._query()
        except UpstreamError as exc:
            logger.warning("Upstream query failed reason=%s detail=%s", exc.reason.value, exc.message)
            return RelayError(reason=exc.reason, detail=exc.message)
        except Exception as exc:
            logger.exception("Upstream query raised unexpectedly")
            return RelayError(reason=FailureReason.UPSTREAM_UNREACHABLE, detail=exc.__class__.__name__)
        else:
            fetched_at = self._clock()
            self._entry = _CacheEntry(record=record, fetched_at=fetched_at)
            logger.info(
                "Upstream query ok name=%r players=%d/%d",
                record.name,
                record.numplayers,
                record.maxplayers,
            )
            return RelayOk(record=record, fetched_at=fetched_at)
        finally:
            self._inflight = None
