"""Pydantic schemas for trivia endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from watchparty.domain.common import CamelModel, UserRef


class TriviaCreateRequest(CamelModel):
    question: str = Field(..., min_length=1, max_length=500)
    options: List[str] = Field(..., max_length=10)
    correct_answer: str = Field(..., min_length=1, max_length=200)
    timestamp: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=64)
    movie: Optional[str] = Field(default=None, max_length=300)


class AnswerRequest(CamelModel):
    answer: Optional[str] = Field(default=None, max_length=200)


class TriviaModel(CamelModel):
    id: str
    room: Optional[str] = None
    movie: str
    question: str
    options: List[str]
    correct_answer: str
    timestamp: float
    created_by: UserRef
    created_at: str
    category: str
    points: int


class AnswerResponse(CamelModel):
    is_correct: bool
    points: int
    message: Optional[str] = None


class AnsweredResponse(CamelModel):
    answered_trivia_ids: List[str]
