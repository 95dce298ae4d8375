# tutor_scheduler/models/chat.py

from typing import List, Optional

from .match import MatchCandidate, MatchRequest
from .session import BookingInfo, ChatMessage, Role
from .tutor import Slot, Tutor, TutorMode, WireModel


class ChatRequest(WireModel):
    session_id: Optional[str] = None
    message: str


class ChatResponse(WireModel):
    reply: str
    session_id: str
    candidates: List[MatchCandidate] = []
    booking_info: Optional[BookingInfo] = None
    scheduling_url: Optional[str] = None


class MessageIn(WireModel):
    role: Role
    content: str
    tutor_match: Optional[MatchCandidate] = None


class MessageAppended(WireModel):
    success: bool = True
    message: ChatMessage


class SessionUpdate(WireModel):
    """Partial session update. Only fields that were sent are applied."""

    messages: Optional[List[ChatMessage]] = None
    pending_match: Optional[MatchCandidate] = None
    last_search_criteria: Optional[MatchRequest] = None
    available_tutors_list: Optional[List[MatchCandidate]] = None
    booking_info: Optional[BookingInfo] = None


class TutorAvailability(WireModel):
    tutor: Tutor
    availability: List[Slot]


class BookSessionRequest(WireModel):
    tutor_id: Optional[int] = None
    day: Optional[str] = None
    time: Optional[str] = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    ccsf_email: Optional[str] = None
    student_id: Optional[str] = None
    allow_other_students: Optional[bool] = None
    classes: Optional[List[str]] = None
    specific_help: Optional[str] = None
    additional_notes: Optional[str] = None
    topic: Optional[str] = None


class SessionDetails(WireModel):
    tutor: str
    day: str
    time: str
    mode: TutorMode


class BookSessionResponse(WireModel):
    success: bool
    scheduling_url: str
    session_details: SessionDetails
    message: Optional[str] = None


class ApiError(WireModel):
    error: str
    message: str
    status_code: int
