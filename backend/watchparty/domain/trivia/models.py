"""Domain models for trivia questions and answers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Trivia:
    id: str
    movie: str
    question: str
    options: List[str]
    correct_answer: str
    created_by: str
    created_at: str
    room: Optional[str] = None
    timestamp: float = 0.0
    category: str = "General"
    points: int = 0

    def to_doc(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "room": self.room,
            "movie": self.movie,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "timestamp": self.timestamp,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "category": self.category,
            "points": self.points,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Trivia":
        return cls(
            id=str(doc["id"]),
            room=doc.get("room"),
            movie=str(doc.get("movie") or "General"),
            question=str(doc["question"]),
            options=[str(o) for o in doc.get("options", [])],
            correct_answer=str(doc["correctAnswer"]),
            timestamp=float(doc.get("timestamp") or 0.0),
            created_by=str(doc["createdBy"]),
            created_at=str(doc.get("createdAt") or ""),
            category=str(doc.get("category") or "General"),
            points=int(doc.get("points") or 0),
        )


@dataclass(slots=True)
class TriviaAnswer:
    """First answer per user and question; never overwritten."""

    id: str
    user_id: str
    trivia_id: str
    answer: str
    is_correct: bool
    answered_at: str = field(default="")

    def to_doc(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "triviaId": self.trivia_id,
            "answer": self.answer,
            "isCorrect": self.is_correct,
            "answeredAt": self.answered_at,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "TriviaAnswer":
        return cls(
            id=str(doc["id"]),
            user_id=str(doc["userId"]),
            trivia_id=str(doc["triviaId"]),
            answer=str(doc.get("answer") or ""),
            is_correct=bool(doc.get("isCorrect", False)),
            answered_at=str(doc.get("answeredAt") or ""),
        )
