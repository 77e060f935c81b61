"""Relay, query and widget settings read from environment variables."""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str) -> list[str]:
    raw = os.getenv(name, "")
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_int(name: str, default: int | None = None) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    return int(raw)


PORT: int = int(os.getenv("PORT", "8787"))
SERVICE_NAME: str = "tfb-arma-status-api"

# Relay
CACHE_TTL_MS: int = int(os.getenv("CACHE_TTL_MS", "15000"))
INCLUDE_RAW: bool = _env_bool("INCLUDE_RAW", False)
CORS_ORIGINS: list[str] = _env_csv("CORS_ORIGIN")

# Arma Reforger (A2S)
ARMA_HOST: str = os.getenv("ARMA_HOST", "").strip()
ARMA_QUERY_PORT: int = _env_int("ARMA_QUERY_PORT", 17777)
QUERY_MAX_RETRIES: int = int(os.getenv("QUERY_MAX_RETRIES", "1"))
QUERY_SOCKET_TIMEOUT_SECONDS: float = float(os.getenv("QUERY_SOCKET_TIMEOUT_SECONDS", "2"))
QUERY_ATTEMPT_TIMEOUT_SECONDS: float = float(os.getenv("QUERY_ATTEMPT_TIMEOUT_SECONDS", "6"))

# Discord widget
REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "4"))
DISCORD_GUILD_ID: str = os.getenv("DISCORD_GUILD_ID", "").strip()
DISCORD_API_BASE: str = os.getenv("DISCORD_API_BASE", "https://discord.com/api")
