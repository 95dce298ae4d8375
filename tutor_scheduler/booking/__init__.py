from .fsm import BookingAdvance, advance_booking, build_payload, start_booking
from .prompts import PromptKind, booking_intro, prompt_text
from .scheduling import build_scheduling_link

__all__ = [
    "BookingAdvance",
    "PromptKind",
    "advance_booking",
    "booking_intro",
    "build_payload",
    "build_scheduling_link",
    "prompt_text",
    "start_booking",
]
