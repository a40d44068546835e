"""Pydantic schemas for the rooms API."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from watchparty.domain.common import CamelModel, UserRef


class MovieInput(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, max_length=300)
    url: Optional[str] = Field(default=None, max_length=2048)
    thumbnail: Optional[str] = Field(default=None, max_length=2048)
    current_time: float = Field(default=0.0, ge=0)
    is_playing: bool = False


class RoomCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    movie: Optional[MovieInput] = None
    is_private: bool = False

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class JoinRequest(CamelModel):
    invite_code: Optional[str] = Field(default=None, max_length=32)
    room_id: Optional[str] = Field(default=None, max_length=64)


class PlaybackReport(CamelModel):
    """A participant's view of the shared player."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, max_length=300)
    url: Optional[str] = Field(default=None, max_length=2048)
    thumbnail: Optional[str] = Field(default=None, max_length=2048)
    current_time: float = Field(..., ge=0)
    is_playing: bool
    timestamp: Optional[Union[float, str]] = None


class SettingsPatch(CamelModel):
    model_config = ConfigDict(extra="ignore")

    max_participants: Optional[int] = Field(default=None, ge=1, le=10_000)
    allow_chat: Optional[bool] = None
    allow_watchlist: Optional[bool] = None
    allow_trivia: Optional[bool] = None
    autoplay: Optional[bool] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    video_link: Optional[str] = Field(default=None, max_length=2048)


class BanRequest(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=64)


class MovieSummaryModel(CamelModel):
    id: str = Field(..., min_length=1, max_length=64)
    title: Optional[str] = None
    thumbnail: Optional[str] = None
    year: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value):
        return str(value) if value is not None else None


class WatchlistAddRequest(CamelModel):
    movie: MovieSummaryModel


class MessageCreateRequest(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content must not be blank")
        return value


class MovieStateModel(CamelModel):
    title: Optional[str] = None
    url: Optional[str] = None
    thumbnail: Optional[str] = None
    current_time: float
    is_playing: bool
    last_updated: str


class RoomSettingsModel(CamelModel):
    max_participants: int
    allow_chat: bool
    allow_watchlist: bool
    allow_trivia: bool
    autoplay: bool
    description: str
    video_link: str


class WatchlistEntryModel(CamelModel):
    movie: MovieSummaryModel
    added_by: Optional[UserRef] = None
    votes: List[str]
    added_at: str


class PlaybackEventModel(CamelModel):
    type: str
    timestamp: str
    user_id: str
    position: float


class SyncEventModel(CamelModel):
    user_id: str
    timestamp: str
    difference: float


class RoomDetail(CamelModel):
    """Room with user references hydrated to ``{id, username}``."""

    id: str
    name: str
    creator: UserRef
    participants: List[UserRef]
    movie: Optional[MovieStateModel] = None
    settings: RoomSettingsModel
    watchlist: List[WatchlistEntryModel]
    is_private: bool
    invite_code: Optional[str] = None
    banned_users: Optional[List[str]] = None
    is_active: bool
    created_at: str
    playback_events: List[PlaybackEventModel] = Field(default_factory=list)
    sync_events: List[SyncEventModel] = Field(default_factory=list)


class InviteCodeResponse(CamelModel):
    invite_code: str


class DeleteResponse(CamelModel):
    message: str


class RoomMessageModel(CamelModel):
    id: str
    room: str
    user: UserRef
    content: str
    timestamp: str
