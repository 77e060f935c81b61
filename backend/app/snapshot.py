"""Write static JSON status snapshots for hosts that cannot run the API.

Usage:
    python -m app.snapshot --out arma-status.json [--discord-out discord-stats.json]

Always exits 0: a failed query is written as an ``ok: false`` snapshot.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from app import config
from app.relay import Relay, status_payload
from app.services import StatusQuery, now_ms
from app.services.arma import query_arma_status
from app.services.discord import DiscordWidgetError, fetch_widget

logger = logging.getLogger("tfb.snapshot")


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


async def build_status_snapshot(query: StatusQuery = query_arma_status) -> dict[str, Any]:
    relay = Relay(query, ttl_ms=config.CACHE_TTL_MS)
    outcome = await relay.get_status()
    return status_payload(outcome, timestamp=relay.now())


async def build_discord_snapshot(guild_id: Optional[str] = None) -> dict[str, Any]:
    try:
        summary = await fetch_widget(guild_id)
    except DiscordWidgetError as exc:
        logger.warning("Discord widget snapshot failed: %s", exc)
        return {"ok": False, "timestamp": now_ms(), "error": str(exc)}
    return {"ok": True, "timestamp": now_ms(), "widget": summary.model_dump()}


async def _run(args: argparse.Namespace) -> None:
    status = await build_status_snapshot()
    write_json(Path(args.out), status)
    logger.info("Wrote %s ok=%s", args.out, status["ok"])

    if args.discord_out:
        discord = await build_discord_snapshot(args.guild_id)
        write_json(Path(args.discord_out), discord)
        logger.info("Wrote %s ok=%s", args.discord_out, discord["ok"])


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Write community status snapshots as JSON.")
    parser.add_argument("--out", default="arma-status.json", help="Path for the game-server snapshot")
    parser.add_argument("--discord-out", default="", help="Optional path for the Discord widget snapshot")
    parser.add_argument("--guild-id", default=None, help="Discord guild id (defaults to DISCORD_GUILD_ID)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    asyncio.run(_run(args))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
