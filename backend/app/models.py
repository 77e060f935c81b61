"""Response models for the status API."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FailureReason(str, Enum):
    CONFIGURATION_MISSING = "ConfigurationMissing"
    UPSTREAM_UNREACHABLE = "UpstreamUnreachable"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"
    UPSTREAM_MALFORMED_RESPONSE = "UpstreamMalformedResponse"


class StatusRecord(BaseModel):
    """One successful game-server query, in the shape browser clients read."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    map: str = ""
    password: bool = False
    numplayers: int = Field(default=0, ge=0)
    maxplayers: int = Field(default=0, ge=0)
    ping: float = Field(default=0, ge=0)
    connect: str = ""
    query_port: int = Field(default=0, ge=0, alias="queryPort")
    version: str = ""
    raw: Optional[dict[str, Any]] = None

    @field_validator("name", "map", "connect", "version", mode="before")
    @classmethod
    def normalize_string(cls, value):
        if value is None:
            return ""
        return value


class StatusOkResponse(BaseModel):
    ok: Literal[True] = True
    timestamp: int
    state: StatusRecord


class StatusErrorResponse(BaseModel):
    ok: Literal[False] = False
    timestamp: int
    error: str


class HealthResponse(BaseModel):
    ok: bool = True
    service: str
    time: int


class DiscordMember(BaseModel):
    username: str = ""
    status: str = "offline"
    avatar: Optional[str] = None
    game: Optional[str] = None


class DiscordVoiceChannel(BaseModel):
    id: str
    name: str = ""
    position: int = 0


class DiscordWidgetSummary(BaseModel):
    guild_id: str
    guild_name: str = ""
    presence_count: int = 0
    in_game: int = 0
    online_members: list[DiscordMember] = Field(default_factory=list)
    voice_channels: list[DiscordVoiceChannel] = Field(default_factory=list)
    instant_invite: Optional[str] = None
