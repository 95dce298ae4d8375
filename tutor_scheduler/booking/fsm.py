from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import structlog

from tutor_scheduler.errors import ValidationError
from tutor_scheduler.models.match import MatchCandidate
from tutor_scheduler.models.session import BookingInfo, BookingPayload, BookingStep
from tutor_scheduler.models.tutor import Slot, Tutor
from tutor_scheduler.telemetry.metrics import BOOKING_TRANSITIONS, BOOKINGS_COMPLETED
from tutor_scheduler.telemetry.tracing import get_tracer

from . import parsers
from .prompts import PromptKind
from .scheduling import build_scheduling_link

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

Updates = Dict[str, Any]
Validator = Callable[[BookingInfo, str], Optional[Updates]]


TRANSITIONS: Dict[BookingStep, BookingStep] = {
    BookingStep.name_email: BookingStep.ccsf_email,
    BookingStep.ccsf_email: BookingStep.student_id,
    BookingStep.student_id: BookingStep.allow_others,
    BookingStep.allow_others: BookingStep.classes,
    BookingStep.classes: BookingStep.specific_help,
    BookingStep.specific_help: BookingStep.additional_notes,
    BookingStep.additional_notes: BookingStep.complete,
}

# (prompt shown on entering the step, re-prompt after invalid input)
STEP_PROMPTS: Dict[BookingStep, tuple] = {
    BookingStep.name_email: (PromptKind.NAME_EMAIL, PromptKind.NAME_EMAIL_INVALID),
    BookingStep.ccsf_email: (PromptKind.CCSF_EMAIL, PromptKind.CCSF_EMAIL_INVALID),
    BookingStep.student_id: (PromptKind.STUDENT_ID, PromptKind.STUDENT_ID_INVALID),
    BookingStep.allow_others: (PromptKind.ALLOW_OTHERS, PromptKind.ALLOW_OTHERS_INVALID),
    BookingStep.classes: (PromptKind.CLASSES, PromptKind.CLASSES_INVALID),
    BookingStep.specific_help: (PromptKind.SPECIFIC_HELP, PromptKind.SPECIFIC_HELP_INVALID),
    BookingStep.additional_notes: (PromptKind.ADDITIONAL_NOTES, PromptKind.ADDITIONAL_NOTES_INVALID),
    BookingStep.complete: (PromptKind.COMPLETE, PromptKind.COMPLETE),
}


@dataclass(frozen=True)
class BookingAdvance:
    booking: BookingInfo
    prompt: PromptKind
    accepted: bool
    payload: Optional[BookingPayload] = None


# ------------------------------------------------------------------
# Per-step validators: field updates on success, None to stay
# ------------------------------------------------------------------

def _name_email(booking: BookingInfo, text: str) -> Optional[Updates]:
    parsed = parsers.parse_name_email(text)
    if parsed is None:
        return None
    name, email = parsed
    updates: Updates = {"student_name": name, "student_email": email}
    if parsers.is_ccsf_email(email):
        updates["ccsf_email"] = email
    return updates


def _ccsf_email(booking: BookingInfo, text: str) -> Optional[Updates]:
    email = parsers.parse_ccsf_email(text)
    if email:
        return {"ccsf_email": email}
    if booking.ccsf_email and parsers.is_same_reply(text):
        return {}
    return None


def _student_id(booking: BookingInfo, text: str) -> Optional[Updates]:
    accepted, student_id = parsers.parse_student_id(text)
    return {"student_id": student_id} if accepted else None


def _allow_others(booking: BookingInfo, text: str) -> Optional[Updates]:
    answer = parsers.parse_yes_no(text)
    return None if answer is None else {"allow_other_students": answer}


def _classes(booking: BookingInfo, text: str) -> Optional[Updates]:
    return {"classes": parsers.extract_classes(text)}


def _specific_help(booking: BookingInfo, text: str) -> Optional[Updates]:
    return {"specific_help": text}


def _additional_notes(booking: BookingInfo, text: str) -> Optional[Updates]:
    return {"additional_notes": None if parsers.is_no_notes(text) else text}


VALIDATORS: Dict[BookingStep, Validator] = {
    BookingStep.name_email: _name_email,
    BookingStep.ccsf_email: _ccsf_email,
    BookingStep.student_id: _student_id,
    BookingStep.allow_others: _allow_others,
    BookingStep.classes: _classes,
    BookingStep.specific_help: _specific_help,
    BookingStep.additional_notes: _additional_notes,
}


def start_booking(candidate: MatchCandidate, slot: Optional[Slot] = None) -> BookingInfo:
    """New booking at the first step, on the given slot or the candidate's first one."""
    if slot is None:
        slots = candidate.available_slots or candidate.tutor.availability
        if not slots:
            raise ValidationError(f"{candidate.tutor.name} has no available slots")
        slot = slots[0]
    return BookingInfo(step=BookingStep.name_email, tutor_id=candidate.tutor.id, slot=slot)


def build_payload(
    booking: BookingInfo,
    tutor: Optional[Tutor] = None,
    now: Optional[datetime] = None,
) -> BookingPayload:
    return BookingPayload(
        tutor_id=booking.tutor_id,
        tutor_name=tutor.name if tutor else None,
        slot=booking.slot,
        student_name=booking.student_name,
        student_email=booking.student_email,
        ccsf_email=booking.ccsf_email,
        student_id=booking.student_id,
        allow_other_students=bool(booking.allow_other_students),
        classes=list(booking.classes or []),
        specific_help=booking.specific_help or "",
        additional_notes=booking.additional_notes,
        topic=tutor.skills[0] if tutor and tutor.skills else None,
        scheduling_url=build_scheduling_link(booking.slot, now=now),
    )


def advance_booking(
    booking: BookingInfo,
    user_input: str,
    tutor: Optional[Tutor] = None,
    now: Optional[datetime] = None,
) -> BookingAdvance:
    """Apply one user answer to the booking.

    Returns a new BookingInfo; the input is never modified. Invalid input
    keeps the current step and asks again. Only the transition into
    `complete` (or advancing an already complete booking) carries a payload.
    """
    step = booking.step
    if step == BookingStep.complete:
        return BookingAdvance(
            booking=booking,
            prompt=PromptKind.COMPLETE,
            accepted=False,
            payload=build_payload(booking, tutor=tutor, now=now),
        )

    with tracer.start_as_current_span("advance_booking") as span:
        span.set_attribute("booking.step", step.value)

        text = (user_input or "").strip()
        updates = VALIDATORS[step](booking, text) if text else None

        if updates is None:
            BOOKING_TRANSITIONS.labels(step=step.value, accepted="false").inc()
            log.info("booking_advanced", step=step.value, accepted=False)
            return BookingAdvance(booking=booking, prompt=STEP_PROMPTS[step][1], accepted=False)

        next_step = TRANSITIONS[step]
        advanced = booking.model_copy(update={**updates, "step": next_step}, deep=True)
        BOOKING_TRANSITIONS.labels(step=step.value, accepted="true").inc()
        log.info("booking_advanced", step=step.value, accepted=True, next_step=next_step.value)

        payload = None
        if next_step == BookingStep.complete:
            payload = build_payload(advanced, tutor=tutor, now=now)
            BOOKINGS_COMPLETED.inc()
            span.set_attribute("booking.completed", True)

        return BookingAdvance(
            booking=advanced,
            prompt=STEP_PROMPTS[next_step][0],
            accepted=True,
            payload=payload,
        )
