from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class WireModel(BaseModel):
    """Snake-case attributes in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TutorMode(str, Enum):
    online = "online"
    on_campus = "on campus"


_MODE_VARIANTS = {
    "online": TutorMode.online,
    "remote": TutorMode.online,
    "virtual": TutorMode.online,
    "on campus": TutorMode.on_campus,
    "oncampus": TutorMode.on_campus,
    "campus": TutorMode.on_campus,
    "in person": TutorMode.on_campus,
}


def parse_mode(value: Any) -> Optional[TutorMode]:
    """Map free-form mode strings ("on-campus", "Online", ...) to TutorMode."""
    if value is None or isinstance(value, TutorMode):
        return value
    text = str(value).strip().lower().replace("-", " ").replace("_", " ")
    if not text:
        return None
    mode = _MODE_VARIANTS.get(" ".join(text.split()))
    if mode is None:
        raise ValueError(f"Unknown tutoring mode: {value!r}")
    return mode


class Slot(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    day: str
    time: str = Field(..., description='Time range like "9:30-10:00".')
    mode: TutorMode

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, v: Any) -> Any:
        return parse_mode(v)

    def matches_day(self, day: str) -> bool:
        return self.day.strip().lower() == day.strip().lower()

    def matches_time(self, time: str) -> bool:
        return time in self.time

    def matches_mode(self, mode: TutorMode) -> bool:
        return self.mode == mode

    def matches(
        self,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
    ) -> bool:
        if day and not self.matches_day(day):
            return False
        if time and not self.matches_time(time):
            return False
        if mode and not self.matches_mode(mode):
            return False
        return True


class Tutor(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    pronouns: Optional[str] = None
    bio: str = ""
    mode: TutorMode
    skills: List[str] = Field(default_factory=list)
    availability: List[Slot] = Field(default_factory=list)

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, v: Any) -> Any:
        return parse_mode(v)

    def slots_matching(
        self,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
    ) -> List[Slot]:
        return [s for s in self.availability if s.matches(day, time, mode)]

    def search_text(self) -> str:
        """Text representation used for embeddings and keyword scans."""
        lines = [f"Tutor: {self.name}"]
        if self.pronouns:
            lines.append(f"Pronouns: {self.pronouns}")
        lines.append(f"Bio: {self.bio}")
        lines.append(f"Skills: {', '.join(self.skills)}")
        lines.append(f"Mode: {self.mode.value}")
        lines.append(
            "Availability: "
            + ", ".join(f"{s.day} {s.time} ({s.mode.value})" for s in self.availability)
        )
        return "\n".join(lines)
