from __future__ import annotations

from typing import List, Optional, Union

from pydantic import Field

from .tutor import Slot, Tutor, TutorMode, WireModel


class MatchRequestIn(WireModel):
    """Raw match request as received on the wire. Nothing is validated yet."""

    skill: Union[str, List[str], None] = None
    day: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[str] = None


class MatchRequest(WireModel):
    """Canonical request produced by the normalizer."""

    skill: str = Field(..., min_length=1)
    day: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[TutorMode] = None

    @property
    def has_filters(self) -> bool:
        return bool(self.day or self.time or self.mode)

    def skill_only(self) -> "MatchRequest":
        return MatchRequest(skill=self.skill)


class MatchCandidate(WireModel):
    tutor: Tutor
    match_score: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    available_slots: List[Slot] = Field(default_factory=list)
