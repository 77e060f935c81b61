"""Discord guild widget (widget.json) client."""

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError

from app import config
from app.models import DiscordMember, DiscordVoiceChannel, DiscordWidgetSummary
from app.services import safe_text

logger = logging.getLogger("tfb.services.discord")


class DiscordWidgetError(Exception):
    pass


def widget_url(guild_id: str, api_base: Optional[str] = None) -> str:
    base = (api_base or config.DISCORD_API_BASE).rstrip("/")
    return f"{base}/guilds/{guild_id}/widget.json"


def _game_name(member: Mapping[str, Any]) -> Optional[str]:
    game = member.get("game")
    if isinstance(game, Mapping):
        name = game.get("name")
        return str(name) if name else None
    if isinstance(game, str) and game:
        return game
    return None


def _optional_text(value) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _position(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def summarize_widget(data: Mapping[str, Any]) -> DiscordWidgetSummary:
    """Reduce a widget payload to presence and activity counts."""
    members = data.get("members")
    if not isinstance(members, list):
        members = []
    channels = data.get("channels")
    if not isinstance(channels, list):
        channels = []

    online: list[DiscordMember] = []
    in_game = 0
    for member in members:
        if not isinstance(member, Mapping):
            continue
        status = str(member.get("status") or "offline")
        if status == "offline":
            continue
        game = _game_name(member)
        if game:
            in_game += 1
        online.append(
            DiscordMember(
                username=safe_text(member.get("username")),
                status=status,
                avatar=_optional_text(member.get("avatar_url")),
                game=game,
            )
        )

    voice_channels = [
        DiscordVoiceChannel(
            id=str(channel.get("id")),
            name=str(channel.get("name") or ""),
            position=_position(channel.get("position")),
        )
        for channel in channels
        if isinstance(channel, Mapping) and channel.get("id") is not None
    ]
    voice_channels.sort(key=lambda channel: channel.position)

    presence = data.get("presence_count")
    return DiscordWidgetSummary(
        guild_id=str(data.get("id") or ""),
        guild_name=str(data.get("name") or ""),
        presence_count=presence if isinstance(presence, int) and presence >= 0 else 0,
        in_game=in_game,
        online_members=online,
        voice_channels=voice_channels,
        instant_invite=_optional_text(data.get("instant_invite")),
    )


async def fetch_widget(
    guild_id: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> DiscordWidgetSummary:
    """Fetch and summarize the public widget. Raises DiscordWidgetError on failure."""
    guild_id = (guild_id or config.DISCORD_GUILD_ID).strip()
    if not guild_id:
        raise DiscordWidgetError("Missing DISCORD_GUILD_ID env var")

    url = widget_url(guild_id)
    try:
        if client is None:
            timeout = httpx.Timeout(timeout=config.REQUEST_TIMEOUT_SECONDS)
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                resp = await owned_client.get(url, headers={"Accept": "application/json"})
        else:
            resp = await client.get(url, headers={"Accept": "application/json"})
    except httpx.HTTPError as exc:
        logger.warning("Widget request failed for guild %s (%s)", guild_id, exc.__class__.__name__)
        raise DiscordWidgetError(f"Widget request failed: {exc.__class__.__name__}") from exc

    if resp.status_code != 200:
        raise DiscordWidgetError(f"Widget API returned status {resp.status_code}")
    try:
        data = resp.json()
    except ValueError as exc:
        raise DiscordWidgetError("Widget API returned invalid JSON") from exc
    if not isinstance(data, Mapping):
        raise DiscordWidgetError("Widget API returned unexpected payload")

    try:
        summary = summarize_widget(data)
    except (ValueError, TypeError, ValidationError) as exc:
        logger.warning("Widget payload rejected for guild %s (%s)", guild_id, exc.__class__.__name__)
        raise DiscordWidgetError("Widget API returned unexpected payload") from exc
    logger.info(
        "Widget fetched guild=%s online=%d in_game=%d channels=%d",
        guild_id,
        summary.presence_count,
        summary.in_game,
        len(summary.voice_channels),
    )
    return summary
