from __future__ import annotations

import time
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .match import MatchCandidate, MatchRequest
from .tutor import Slot, WireModel


GREETING = (
    "Hi! 👋 I'm your AI scheduling assistant for the CCSF CS Tutor Squad.\n\n"
    "I can help you:\n"
    "• Find the perfect tutor for your programming needs\n"
    "• Book tutoring sessions\n"
    "• Match you with tutors based on your schedule and preferences\n\n"
    "**What programming languages or topics do you need help with?**\n\n"
    "💡 **Example prompts:**\n"
    '• "I need help with Python"\n'
    '• "Looking for a Java tutor on Monday"\n'
    '• "Help with JavaScript, available Tuesday"\n'
    '• "Python tutor, online sessions preferred"'
)


def now_ms() -> int:
    return int(time.time() * 1000)


class Role(str, Enum):
    user = "user"
    assistant = "assistant"


class BookingStep(str, Enum):
    name_email = "name-email"
    ccsf_email = "ccsf-email"
    student_id = "student-id"
    allow_others = "allow-others"
    classes = "classes"
    specific_help = "specific-help"
    additional_notes = "additional-notes"
    complete = "complete"


class BookingInfo(WireModel):
    step: BookingStep = BookingStep.name_email
    tutor_id: Optional[int] = None
    student_name: str = ""
    student_email: str = ""
    ccsf_email: str = ""
    student_id: Optional[str] = None
    allow_other_students: Optional[bool] = None
    classes: Optional[List[str]] = None
    specific_help: Optional[str] = None
    additional_notes: Optional[str] = None
    slot: Slot


class BookingPayload(WireModel):
    tutor_id: Optional[int] = None
    tutor_name: Optional[str] = None
    slot: Slot
    student_name: str
    student_email: str
    ccsf_email: str
    student_id: Optional[str] = None
    allow_other_students: bool = False
    classes: List[str] = Field(default_factory=list)
    specific_help: str = ""
    additional_notes: Optional[str] = None
    topic: Optional[str] = None
    scheduling_url: str


class ChatMessage(WireModel):
    role: Role
    content: str
    tutor_match: Optional[MatchCandidate] = None
    timestamp: int = Field(default_factory=now_ms)


def initial_messages() -> List[ChatMessage]:
    return [ChatMessage(role=Role.assistant, content=GREETING)]


class ChatSession(WireModel):
    id: str
    messages: List[ChatMessage] = Field(default_factory=initial_messages)
    pending_match: Optional[MatchCandidate] = None
    last_search_criteria: Optional[MatchRequest] = None
    available_tutors_list: List[MatchCandidate] = Field(default_factory=list)
    booking_info: Optional[BookingInfo] = None
    created_at: int = Field(default_factory=now_ms)
    last_accessed_at: int = Field(default_factory=now_ms)

    def touch(self) -> None:
        self.last_accessed_at = now_ms()

    def append(
        self,
        role: Role,
        content: str,
        tutor_match: Optional[MatchCandidate] = None,
    ) -> ChatMessage:
        message = ChatMessage(role=role, content=content, tutor_match=tutor_match)
        self.messages.append(message)
        self.touch()
        return message
