"""Pydantic schemas for profile and personal watchlist endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from watchparty.domain.common import CamelModel
from watchparty.domain.rooms.schemas import MovieSummaryModel


class SocialLinksModel(CamelModel):
    twitter: str = ""
    facebook: str = ""
    linkedin: str = ""
    instagram: str = ""
    website: str = ""


class PreferencesModel(CamelModel):
    notifications: bool = True
    theme: str = "light"


class UserWatchlistEntry(CamelModel):
    movie: MovieSummaryModel
    votes: List[str]
    added_at: str


class ProfileResponse(CamelModel):
    id: str
    username: str
    email: Optional[str] = None
    photo_url: str = Field(default="", serialization_alias="photoURL")
    bio: str = ""
    social_links: SocialLinksModel
    preferences: PreferencesModel
    watchlist: List[UserWatchlistEntry]
    created_at: str


class SocialLinksPatch(CamelModel):
    twitter: Optional[str] = Field(default=None, max_length=300)
    facebook: Optional[str] = Field(default=None, max_length=300)
    linkedin: Optional[str] = Field(default=None, max_length=300)
    instagram: Optional[str] = Field(default=None, max_length=300)
    website: Optional[str] = Field(default=None, max_length=300)


class PreferencesPatch(CamelModel):
    notifications: Optional[bool] = None
    theme: Optional[str] = Field(default=None, max_length=32)


class ProfileUpdateRequest(CamelModel):
    username: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    social_links: Optional[SocialLinksPatch] = None
    preferences: Optional[PreferencesPatch] = None
