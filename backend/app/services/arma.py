"""Arma Reforger server query over Valve A2S."""

import asyncio
import logging
import socket
from typing import Any, Optional

import a2s

from app import config
from app.models import StatusRecord
from app.services import (
    ConfigurationMissingError,
    UpstreamError,
    UpstreamMalformedResponseError,
    UpstreamTimeoutError,
    UpstreamUnreachableError,
    finite_number,
    safe_text,
)

logger = logging.getLogger("tfb.services.arma")

_RAW_SCALARS = (str, int, float, bool)


async def _fetch_info(address: tuple[str, int], timeout: float):
    return await a2s.ainfo(address, timeout=timeout)


def _raw_info(info: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for key, value in getattr(info, "__dict__", {}).items():
        if key.startswith("_"):
            continue
        if isinstance(value, bytes):
            raw[key] = safe_text(value)
        elif value is None or isinstance(value, _RAW_SCALARS):
            raw[key] = value
        else:
            raw[key] = str(value)
    return raw


def build_record(info: Any, *, host: str, query_port: int, include_raw: bool = False) -> StatusRecord:
    """Normalize an A2S info reply, defaulting anything missing or non-finite."""
    game_port = getattr(info, "port", None)
    if not isinstance(game_port, int) or isinstance(game_port, bool) or game_port <= 0:
        game_port = query_port

    ping_seconds = finite_number(getattr(info, "ping", None))
    return StatusRecord(
        name=safe_text(getattr(info, "server_name", "")),
        map=safe_text(getattr(info, "map_name", "")),
        password=bool(getattr(info, "password_protected", False)),
        numplayers=int(finite_number(getattr(info, "player_count", None))),
        maxplayers=int(finite_number(getattr(info, "max_players", None))),
        ping=round(ping_seconds * 1000, 1),
        connect=f"{host}:{game_port}",
        query_port=query_port,
        version=safe_text(getattr(info, "version", "")),
        raw=_raw_info(info) if include_raw else None,
    )


async def _attempt(address: tuple[str, int], socket_timeout: float, attempt_timeout: float):
    try:
        return await asyncio.wait_for(_fetch_info(address, socket_timeout), timeout=attempt_timeout)
    except (asyncio.TimeoutError, socket.timeout) as exc:
        raise UpstreamTimeoutError(f"No A2S reply from {address[0]}:{address[1]}") from exc
    except (a2s.BrokenMessageError, a2s.BufferExhaustedError, UnicodeDecodeError, ValueError) as exc:
        raise UpstreamMalformedResponseError(
            f"Malformed A2S reply from {address[0]}:{address[1]} ({exc.__class__.__name__})"
        ) from exc
    except OSError as exc:
        raise UpstreamUnreachableError(f"{address[0]}:{address[1]} unreachable ({exc})") from exc


async def query_arma_status(
    host: Optional[str] = None,
    port: Optional[int] = None,
    *,
    max_retries: Optional[int] = None,
    socket_timeout: Optional[float] = None,
    attempt_timeout: Optional[float] = None,
    include_raw: Optional[bool] = None,
) -> StatusRecord:
    """Query the configured server, retrying up to max_retries times.

    Raises an UpstreamError subclass on failure; the last attempt's error wins.
    """
    host = (host if host is not None else config.ARMA_HOST).strip()
    if not host:
        raise ConfigurationMissingError("Missing ARMA_HOST env var")
    port = port if port is not None else config.ARMA_QUERY_PORT
    retries = max(config.QUERY_MAX_RETRIES if max_retries is None else max_retries, 0)
    socket_timeout = config.QUERY_SOCKET_TIMEOUT_SECONDS if socket_timeout is None else socket_timeout
    attempt_timeout = config.QUERY_ATTEMPT_TIMEOUT_SECONDS if attempt_timeout is None else attempt_timeout
    include_raw = config.INCLUDE_RAW if include_raw is None else include_raw

    address = (host, port)
    attempt = 0
    while True:
        attempt += 1
        try:
            info = await _attempt(address, socket_timeout, attempt_timeout)
        except UpstreamError as exc:
            logger.warning(
                "A2S query attempt %d/%d failed for %s:%d (%s)",
                attempt,
                retries + 1,
                host,
                port,
                exc.reason.value,
            )
            if attempt > retries:
                raise
            continue
        return build_record(info, host=host, query_port=port, include_raw=include_raw)
