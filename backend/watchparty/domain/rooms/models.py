"""Domain models for watch-party rooms."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from watchparty.settings import settings

PlaybackEventType = str  # play, pause, seek or sync


@dataclass(slots=True)
class MovieState:
    """The single authoritative playback state of a room."""

    current_time: float
    is_playing: bool
    last_updated: str
    title: Optional[str] = None
    url: Optional[str] = None
    thumbnail: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "thumbnail": self.thumbnail,
            "currentTime": self.current_time,
            "isPlaying": self.is_playing,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "MovieState":
        return cls(
            title=doc.get("title"),
            url=doc.get("url"),
            thumbnail=doc.get("thumbnail"),
            current_time=float(doc.get("currentTime") or 0.0),
            is_playing=bool(doc.get("isPlaying", False)),
            last_updated=str(doc.get("lastUpdated") or ""),
        )


@dataclass(slots=True)
class RoomSettings:
    max_participants: int = field(default_factory=lambda: settings.room_default_max_participants)
    allow_chat: bool = True
    allow_watchlist: bool = True
    allow_trivia: bool = True
    autoplay: bool = False
    description: str = ""
    video_link: str = ""

    def to_doc(self) -> Dict[str, Any]:
        return {
            "maxParticipants": self.max_participants,
            "allowChat": self.allow_chat,
            "allowWatchlist": self.allow_watchlist,
            "allowTrivia": self.allow_trivia,
            "autoplay": self.autoplay,
            "description": self.description,
            "videoLink": self.video_link,
        }

    @classmethod
    def from_doc(cls, doc: Optional[Dict[str, Any]]) -> "RoomSettings":
        result = cls()
        if not doc:
            return result
        result.max_participants = int(doc.get("maxParticipants", result.max_participants))
        result.allow_chat = bool(doc.get("allowChat", result.allow_chat))
        result.allow_watchlist = bool(doc.get("allowWatchlist", result.allow_watchlist))
        result.allow_trivia = bool(doc.get("allowTrivia", result.allow_trivia))
        result.autoplay = bool(doc.get("autoplay", result.autoplay))
        result.description = str(doc.get("description") or "")
        result.video_link = str(doc.get("videoLink") or "")
        return result


@dataclass(slots=True)
class MovieSummary:
    id: str
    title: Optional[str] = None
    thumbnail: Optional[str] = None
    year: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "thumbnail": self.thumbnail, "year": self.year}

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "MovieSummary":
        year = doc.get("year")
        return cls(
            id=str(doc["id"]),
            title=doc.get("title"),
            thumbnail=doc.get("thumbnail"),
            year=str(year) if year is not None else None,
        )


@dataclass(slots=True)
class WatchlistEntry:
    """A candidate movie and the set of users voting for it.

    ``added_by`` is only tracked for room-scoped ledgers.
    """

    movie: MovieSummary
    votes: List[str]
    added_at: str
    added_by: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "movie": self.movie.to_doc(),
            "votes": list(self.votes),
            "addedAt": self.added_at,
        }
        if self.added_by is not None:
            doc["addedBy"] = self.added_by
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "WatchlistEntry":
        return cls(
            movie=MovieSummary.from_doc(doc["movie"]),
            votes=[str(v) for v in doc.get("votes", [])],
            added_at=str(doc.get("addedAt") or ""),
            added_by=doc.get("addedBy"),
        )


@dataclass(slots=True)
class PlaybackEvent:
    type: PlaybackEventType
    timestamp: str
    user_id: str
    position: float

    def to_doc(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "timestamp": self.timestamp,
            "userId": self.user_id,
            "position": self.position,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "PlaybackEvent":
        return cls(
            type=doc["type"],
            timestamp=str(doc.get("timestamp") or ""),
            user_id=str(doc.get("userId") or ""),
            position=float(doc.get("position") or 0.0),
        )


@dataclass(slots=True)
class SyncEvent:
    """Drift sample: stored position minus reported position."""

    user_id: str
    timestamp: str
    difference: float

    def to_doc(self) -> Dict[str, Any]:
        return {"userId": self.user_id, "timestamp": self.timestamp, "difference": self.difference}

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "SyncEvent":
        return cls(
            user_id=str(doc.get("userId") or ""),
            timestamp=str(doc.get("timestamp") or ""),
            difference=float(doc.get("difference") or 0.0),
        )


@dataclass(slots=True)
class Room:
    """Persisted representation of a watch-party room."""

    id: str
    name: str
    creator: str
    created_at: str
    participants: List[str] = field(default_factory=list)
    movie: Optional[MovieState] = None
    settings: RoomSettings = field(default_factory=RoomSettings)
    watchlist: List[WatchlistEntry] = field(default_factory=list)
    is_private: bool = False
    invite_code: Optional[str] = None
    banned_users: List[str] = field(default_factory=list)
    is_active: bool = True
    playback_events: List[PlaybackEvent] = field(default_factory=list)
    sync_events: List[SyncEvent] = field(default_factory=list)

    def is_creator(self, user_id: str) -> bool:
        return self.creator == user_id

    def is_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def is_banned(self, user_id: str) -> bool:
        return user_id in self.banned_users

    def at_capacity(self) -> bool:
        return len(self.participants) >= self.settings.max_participants

    def to_doc(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "creator": self.creator,
            "participants": list(self.participants),
            "movie": self.movie.to_doc() if self.movie else None,
            "settings": self.settings.to_doc(),
            "watchlist": [entry.to_doc() for entry in self.watchlist],
            "isPrivate": self.is_private,
            "bannedUsers": list(self.banned_users),
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "playbackEvents": [event.to_doc() for event in self.playback_events],
            "syncEvents": [event.to_doc() for event in self.sync_events],
        }
        # absent rather than null so the invite code index stays sparse
        if self.invite_code is not None:
            doc["inviteCode"] = self.invite_code
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Room":
        movie = doc.get("movie")
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            creator=str(doc["creator"]),
            created_at=str(doc.get("createdAt") or ""),
            participants=[str(p) for p in doc.get("participants", [])],
            movie=MovieState.from_doc(movie) if movie else None,
            settings=RoomSettings.from_doc(doc.get("settings")),
            watchlist=[WatchlistEntry.from_doc(item) for item in doc.get("watchlist", [])],
            is_private=bool(doc.get("isPrivate", False)),
            invite_code=doc.get("inviteCode"),
            banned_users=[str(b) for b in doc.get("bannedUsers", [])],
            is_active=bool(doc.get("isActive", True)),
            playback_events=[PlaybackEvent.from_doc(e) for e in doc.get("playbackEvents", [])],
            sync_events=[SyncEvent.from_doc(e) for e in doc.get("syncEvents", [])],
        )


@dataclass(slots=True)
class RoomMessage:
    """Chat message; immutable once stored."""

    id: str
    room: str
    user: str
    content: str
    timestamp: str

    def to_doc(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "room": self.room,
            "user": self.user,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "RoomMessage":
        return cls(
            id=str(doc["id"]),
            room=str(doc["room"]),
            user=str(doc["user"]),
            content=str(doc.get("content") or ""),
            timestamp=str(doc.get("timestamp") or ""),
        )
