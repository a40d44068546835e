"""Domain models for user documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from watchparty.domain.rooms.models import WatchlistEntry

SOCIAL_LINK_FIELDS = ("twitter", "facebook", "linkedin", "instagram", "website")
ACTIVITY_FIELDS = ("roomsCreated", "roomsParticipated", "messagesSent")


@dataclass(slots=True)
class Preferences:
    notifications: bool = True
    theme: str = "light"

    def to_doc(self) -> Dict[str, Any]:
        return {"notifications": self.notifications, "theme": self.theme}

    @classmethod
    def from_doc(cls, doc: Optional[Dict[str, Any]]) -> "Preferences":
        doc = doc or {}
        return cls(
            notifications=bool(doc.get("notifications", True)),
            theme=str(doc.get("theme") or "light"),
        )


@dataclass(slots=True)
class User:
    id: str
    username: str
    created_at: str
    email: Optional[str] = None
    password_hash: Optional[str] = None
    photo_url: str = ""
    bio: str = ""
    social_links: Dict[str, str] = field(default_factory=lambda: {name: "" for name in SOCIAL_LINK_FIELDS})
    preferences: Preferences = field(default_factory=Preferences)
    badges: List[str] = field(default_factory=list)
    last_login: Optional[str] = None
    watchlist: List[WatchlistEntry] = field(default_factory=list)
    activity_stats: Dict[str, int] = field(default_factory=lambda: {name: 0 for name in ACTIVITY_FIELDS})

    def to_doc(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "photoURL": self.photo_url,
            "bio": self.bio,
            "socialLinks": dict(self.social_links),
            "preferences": self.preferences.to_doc(),
            "badges": list(self.badges),
            "lastLogin": self.last_login,
            "watchlist": [entry.to_doc() for entry in self.watchlist],
            "activityStats": dict(self.activity_stats),
            "createdAt": self.created_at,
        }
        if self.email is not None:
            doc["email"] = self.email
        if self.password_hash is not None:
            doc["passwordHash"] = self.password_hash
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "User":
        links = {name: "" for name in SOCIAL_LINK_FIELDS}
        links.update({k: str(v or "") for k, v in (doc.get("socialLinks") or {}).items() if k in links})
        stats = {name: 0 for name in ACTIVITY_FIELDS}
        stats.update({k: int(v or 0) for k, v in (doc.get("activityStats") or {}).items() if k in stats})
        return cls(
            id=str(doc["id"]),
            username=str(doc.get("username") or ""),
            created_at=str(doc.get("createdAt") or ""),
            email=doc.get("email"),
            password_hash=doc.get("passwordHash"),
            photo_url=str(doc.get("photoURL") or ""),
            bio=str(doc.get("bio") or ""),
            social_links=links,
            preferences=Preferences.from_doc(doc.get("preferences")),
            badges=[str(b) for b in doc.get("badges", [])],
            last_login=doc.get("lastLogin"),
            watchlist=[WatchlistEntry.from_doc(item) for item in doc.get("watchlist", [])],
            activity_stats=stats,
        )
