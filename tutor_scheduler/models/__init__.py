# tutor_scheduler/models/__init__.py

from .chat import ChatRequest, ChatResponse
from .match import MatchCandidate, MatchRequest, MatchRequestIn
from .session import BookingInfo, BookingPayload, BookingStep, ChatMessage, ChatSession, Role
from .tutor import DAYS, Slot, Tutor, TutorMode, parse_mode

__all__ = [
    "BookingInfo",
    "BookingPayload",
    "BookingStep",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ChatSession",
    "DAYS",
    "MatchCandidate",
    "MatchRequest",
    "MatchRequestIn",
    "Role",
    "Slot",
    "Tutor",
    "TutorMode",
    "parse_mode",
]
