"""TFB status relay API: main application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from app import config
from app.models import HealthResponse
from app.relay import Relay, RelayOk, status_payload
from app.services import now_ms
from app.services.arma import query_arma_status

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("tfb.api")


def _log_startup_env_warnings() -> None:
    if not config.ARMA_HOST:
        logger.warning("ARMA_HOST is not set; /api/status will report ConfigurationMissing.")
    if not config.CORS_ORIGINS:
        logger.warning("CORS_ORIGIN is not set; allowing any origin.")


def build_relay() -> Relay:
    return Relay(query_arma_status, ttl_ms=config.CACHE_TTL_MS)


relay = build_relay()


@asynccontextmanager
async def _lifespan(_: FastAPI):
    _log_startup_env_warnings()
    logger.info(
        "Relay ready target=%s:%s ttl_ms=%d include_raw=%s",
        config.ARMA_HOST or "-",
        config.ARMA_QUERY_PORT,
        config.CACHE_TTL_MS,
        config.INCLUDE_RAW,
    )
    yield


# --- App ---
app = FastAPI(
    title="tfb-arma-status-api",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS or ["*"],
    allow_methods=["GET"],
    allow_headers=["Accept", "Content-Type"],
)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(ok=True, service=config.SERVICE_NAME, time=now_ms())


# Errors are payload-level: both branches answer 200.
@app.get("/api/status")
@app.get("/api/arma", include_in_schema=False)
async def get_status(response: Response):
    outcome = await relay.get_status()
    if isinstance(outcome, RelayOk):
        max_age = relay.remaining_ttl_ms(outcome.fetched_at) // 1000
        response.headers["Cache-Control"] = f"public, max-age={max_age}"
    else:
        response.headers["Cache-Control"] = "no-store"
    return status_payload(outcome, timestamp=relay.now())


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
