# tutor_scheduler/conversation.py: deterministic chat turn handler

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import structlog

from .booking import advance_booking, booking_intro, prompt_text, start_booking
from .data.repository import TutorRepository
from .models.match import MatchCandidate, MatchRequest
from .models.session import GREETING, BookingPayload, ChatSession, Role, initial_messages
from .models.tutor import Slot
from .retrieval.normalize import extract_day, extract_match_request, extract_time
from .retrieval.pipeline import MatchPipeline
from .telemetry.tracing import get_tracer

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass
class TurnResult:
    reply: str
    session: ChatSession
    candidates: List[MatchCandidate] = field(default_factory=list)
    intent: str = "clarify"
    payload: Optional[BookingPayload] = None


# ------------------------------------------------------------
# Message classification
# ------------------------------------------------------------

RESET_WORDS = {"reset", "start over", "restart"}
HELP_WORDS = {"help", "menu", "options"}
CANCEL_WORDS = {"cancel", "stop", "never mind", "nevermind", "cancel booking"}
CONFIRM_WORDS = {"yes", "y"}

GREETING_RE = re.compile(
    r"^(hi|hello|hey|greetings|what's up|sup|howdy|good morning|good afternoon|good evening)[\s!.,]*$",
    re.I,
)
OTHER_TUTORS_RE = re.compile(
    r"\b(other|more|else|another|different|who else|anyone else|any other|"
    r"is (it|that|this) the only|are there (more|other)|what about)\b",
    re.I,
)

# Preferred when choosing a skill from a tutor's profile.
PROGRAMMING_SKILLS = ["Python", "Java", "JavaScript", "C++", "React", "HTML", "CSS", "Linux", "SQL", "MIPS Assembly"]

HELP_TEXT = (
    "Here's what I can do:\n\n"
    "1. **Find a tutor** – tell me a language or topic, and optionally a day, time, "
    "or online / on campus.\n"
    "2. **Show other tutors** – ask \"who else?\" to see everyone who matches.\n"
    "3. **Book a session** – say `book` (or a tutor's name) and I'll walk you through 7 quick steps.\n\n"
    "You can also say `cancel` during a booking, or `reset` to start over."
)

GREETING_REPLY = (
    "Hey there! 👋\n\n"
    "I'm here to help you find the perfect tutor and schedule your tutoring session. "
    "I can match you with tutors based on:\n"
    "• Programming languages (Python, Java, JavaScript, C++, etc.)\n"
    "• Your preferred day and time\n"
    "• Online or on-campus sessions\n\n"
    "**What do you need help with?**"
)

CLARIFY_REPLY = (
    "I'm not sure what you're looking for yet. Tell me a programming language or topic "
    "(e.g. Python, Java, SQL, C++) and, if you like, a day, a time, or online / on campus."
)


BOOK_RE = re.compile(r"\b(book|confirm)\b", re.I)


def _is_confirmation(session: ChatSession, msg: str, low: str) -> bool:
    """Yes, or `book` / `confirm` as a word. A message naming a new skill is a
    search unless it also names a listed tutor."""
    if low in CONFIRM_WORDS:
        return True
    if not BOOK_RE.search(msg):
        return False
    if extract_match_request(msg) is None:
        return True
    return any(_mentions(msg, c) >= 0 for c in session.available_tutors_list)


# ------------------------------------------------------------
# Formatting
# ------------------------------------------------------------

def _format_candidate(i: int, c: MatchCandidate) -> str:
    t = c.tutor
    name = f"**{t.name}**" + (f" ({t.pronouns})" if t.pronouns else "")
    slots = ", ".join(f"{s.day} {s.time} ({s.mode.value})" for s in c.available_slots)
    return (
        f"{i}. {name} · {t.mode.value}\n"
        f"   Skills: {', '.join(t.skills)}\n"
        f"   Available: {slots}"
    )


def format_candidates(request: MatchRequest, candidates: List[MatchCandidate]) -> str:
    if len(candidates) == 1:
        head = f"I found a great match for **{request.skill}**:"
        tail = "Would you like to book a session? Reply **book** to get started."
    else:
        head = f"I found {len(candidates)} tutors for **{request.skill}**:"
        tail = f"Name a tutor to book with them, or just say **book** for **{candidates[0].tutor.name}**."
    body = "\n\n".join(_format_candidate(i, c) for i, c in enumerate(candidates, start=1))
    return f"{head}\n\n{body}\n\n{tail}"


def format_booking_summary(payload: BookingPayload) -> str:
    slot = payload.slot
    return (
        "✅ **Booking Complete!**\n\n"
        "📅 Session Details:\n"
        f"- Tutor: {payload.tutor_name or 'your tutor'}\n"
        f"- Day: {slot.day}\n"
        f"- Time: {slot.time}\n"
        f"- Mode: {slot.mode.value}\n\n"
        f"🔗 Booking Link:\n{payload.scheduling_url}\n\n"
        "Please open the link to confirm your session on Calendly."
    )


# ------------------------------------------------------------
# Candidate selection
# ------------------------------------------------------------

def _mentions(text: str, candidate: MatchCandidate) -> int:
    """Last position where the tutor is named in text, or -1."""
    low = text.lower()
    full = candidate.tutor.name.lower()
    first = full.split()[0]
    pos = low.rfind(full)
    if pos >= 0:
        return pos
    hits = list(re.finditer(rf"\b{re.escape(first)}\b", low))
    return hits[-1].start() if hits else -1


def _last_assistant_message(session: ChatSession) -> str:
    for msg in reversed(session.messages):
        if msg.role == Role.assistant:
            return msg.content
    return ""


def select_candidate(session: ChatSession, message: str) -> Optional[MatchCandidate]:
    """Single candidate; the one named in the message; the one named last by
    the assistant; else the first."""
    candidates = list(session.available_tutors_list)
    if not candidates and session.pending_match is not None:
        candidates = [session.pending_match]
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    for c in candidates:
        if _mentions(message, c) >= 0:
            return c

    previous = _last_assistant_message(session)
    best, best_pos = None, -1
    for c in candidates:
        pos = _mentions(previous, c)
        if pos > best_pos:
            best, best_pos = c, pos
    if best is not None:
        return best

    return candidates[0]


def _pick_slot(candidate: MatchCandidate, message: str) -> Optional[Slot]:
    day = extract_day(message)
    time = extract_time(message)
    if not day and not time:
        return None
    slots = candidate.tutor.slots_matching(day, time)
    return slots[0] if slots else None


# ------------------------------------------------------------
# Turn handler
# ------------------------------------------------------------

def _search(session: ChatSession, request: MatchRequest, pipeline: MatchPipeline, intent: str) -> TurnResult:
    candidates = pipeline.match_tutors(request)
    session.last_search_criteria = request

    if not candidates:
        session.available_tutors_list = []
        reply = (
            f"Sorry, I couldn't find any tutors for **{request.skill}** right now. "
            "Try another language or topic, or check back later."
        )
        session.append(Role.assistant, reply)
        return TurnResult(reply=reply, session=session, intent=intent)

    session.available_tutors_list = candidates
    session.pending_match = candidates[0]
    reply = format_candidates(request, candidates)
    session.append(Role.assistant, reply, tutor_match=candidates[0])
    return TurnResult(reply=reply, session=session, candidates=candidates, intent=intent)


def _other_tutors_request(session: ChatSession, message: str) -> Optional[MatchRequest]:
    from_message = extract_match_request(message)
    if from_message is not None:
        return from_message
    if session.last_search_criteria is not None:
        return session.last_search_criteria.skill_only()
    if session.pending_match is not None:
        skills = session.pending_match.tutor.skills
        preferred = next((s for s in skills if s in PROGRAMMING_SKILLS), None)
        skill = preferred or (skills[0] if skills else None)
        if skill:
            return MatchRequest(skill=skill)
    return None


def handle_turn(
    session: ChatSession,
    message: str,
    pipeline: MatchPipeline,
    repository: TutorRepository,
    now: Optional[datetime] = None,
) -> TurnResult:
    """
    Interpret one user message against the session.

    Works on a copy: the caller persists `result.session` with a single put,
    so a failure part-way through writes nothing.
    """
    session = session.model_copy(deep=True)
    msg = (message or "").strip()
    low = msg.lower()

    with tracer.start_as_current_span("handle_turn") as span:
        result = _dispatch(session, msg, low, pipeline, repository, now)
        span.set_attribute("turn.intent", result.intent)

    log.info(
        "turn_handled",
        session_id=session.id,
        intent=result.intent,
        candidates=len(result.candidates),
        booking_step=result.session.booking_info.step.value if result.session.booking_info else None,
    )
    return result


def _dispatch(
    session: ChatSession,
    msg: str,
    low: str,
    pipeline: MatchPipeline,
    repository: TutorRepository,
    now: Optional[datetime],
) -> TurnResult:
    # --------------------------------------------------------
    # Global commands
    # --------------------------------------------------------
    if low in RESET_WORDS:
        fresh = ChatSession(id=session.id, created_at=session.created_at, messages=initial_messages())
        return TurnResult(reply=GREETING, session=fresh, intent="reset")

    session.append(Role.user, msg)

    # --------------------------------------------------------
    # Booking in progress
    # --------------------------------------------------------
    booking = session.booking_info
    if booking is not None:
        if low in CANCEL_WORDS:
            session.booking_info = None
            session.pending_match = None
            reply = "No problem, I've cancelled that booking. What would you like help with?"
            session.append(Role.assistant, reply)
            return TurnResult(reply=reply, session=session, intent="booking_cancelled")

        tutor = repository.get_tutor_by_id(booking.tutor_id) if booking.tutor_id is not None else None
        step = advance_booking(booking, msg, tutor=tutor, now=now)

        if step.payload is not None:
            reply = format_booking_summary(step.payload)
            session.booking_info = None
            session.pending_match = None
            session.append(Role.assistant, reply)
            return TurnResult(reply=reply, session=session, intent="booking_complete", payload=step.payload)

        session.booking_info = step.booking
        reply = prompt_text(step.prompt, step.booking)
        session.append(Role.assistant, reply)
        return TurnResult(reply=reply, session=session, intent="booking_step")

    if low in HELP_WORDS:
        session.append(Role.assistant, HELP_TEXT)
        return TurnResult(reply=HELP_TEXT, session=session, intent="help")

    # --------------------------------------------------------
    # Booking confirmation
    # --------------------------------------------------------
    if _is_confirmation(session, msg, low) and (session.pending_match or session.available_tutors_list):
        candidate = select_candidate(session, msg)
        if candidate is not None:
            booking = start_booking(candidate, slot=_pick_slot(candidate, msg))
            session.booking_info = booking
            session.pending_match = candidate
            reply = booking_intro(candidate.tutor, booking)
            session.append(Role.assistant, reply, tutor_match=candidate)
            return TurnResult(reply=reply, session=session, candidates=[candidate], intent="booking_started")

    if GREETING_RE.match(msg):
        session.append(Role.assistant, GREETING_REPLY)
        return TurnResult(reply=GREETING_REPLY, session=session, intent="greeting")

    # --------------------------------------------------------
    # Search
    # --------------------------------------------------------
    if OTHER_TUTORS_RE.search(msg):
        request = _other_tutors_request(session, msg)
        if request is None:
            reply = "I'd be happy to show you other tutors! What programming language or topic are you looking for?"
            session.append(Role.assistant, reply)
            return TurnResult(reply=reply, session=session, intent="other_tutors")
        return _search(session, request, pipeline, intent="other_tutors")

    request = extract_match_request(msg)
    if request is not None:
        return _search(session, request, pipeline, intent="search")

    session.append(Role.assistant, CLARIFY_REPLY)
    return TurnResult(reply=CLARIFY_REPLY, session=session, intent="clarify")
