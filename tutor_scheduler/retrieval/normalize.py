from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from tutor_scheduler.errors import ValidationError
from tutor_scheduler.models.match import MatchRequest, MatchRequestIn
from tutor_scheduler.models.tutor import DAYS, TutorMode, parse_mode


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def normalize_request(raw: Union[MatchRequest, MatchRequestIn, Mapping[str, Any]]) -> MatchRequest:
    """Canonicalize a raw match request.

    Raises ValidationError when the skill is missing or blank, or when the
    mode is not a recognizable tutoring mode.
    """
    if isinstance(raw, MatchRequest):
        return raw

    if isinstance(raw, MatchRequestIn):
        incoming = raw
    else:
        try:
            incoming = MatchRequestIn.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed match request: {e.errors()[0]['msg']}") from e

    skill = incoming.skill
    if isinstance(skill, list):
        skill = ", ".join(s.strip() for s in skill if s and s.strip())
    skill = _clean(skill)
    if not skill:
        raise ValidationError("skill is required")

    try:
        mode = parse_mode(_clean(incoming.mode))
    except ValueError as e:
        raise ValidationError(str(e)) from e

    return MatchRequest(
        skill=skill,
        day=_clean(incoming.day),
        time=_clean(incoming.time),
        mode=mode,
    )


# ============================================================
# Free-text extraction (chat messages)
# ============================================================

_SKILL_PATTERNS = [
    ("JavaScript", re.compile(r"\b(javascript|js)\b", re.I)),
    ("Java", re.compile(r"\bjava\b", re.I)),
    ("Python", re.compile(r"\bpython\b", re.I)),
    ("React", re.compile(r"\breact\b", re.I)),
    ("HTML", re.compile(r"\bhtml\b", re.I)),
    ("CSS", re.compile(r"\bcss\b", re.I)),
    ("Linux", re.compile(r"\blinux\b", re.I)),
    ("SQL", re.compile(r"\b(sql|mysql|postgres(ql)?)\b", re.I)),
    ("C++", re.compile(r"(?<![\w+])(c\+\+|cpp)(?![\w+])", re.I)),
    ("MIPS Assembly", re.compile(r"\b(mips(\s+assembly)?|assembly)\b", re.I)),
    ("Debugging", re.compile(r"\bdebug(ging)?\b", re.I)),
]

_DAY_RE = re.compile(r"\b(" + "|".join(DAYS) + r")\b", re.I)
_TIME_RE = re.compile(r"\b(\d{1,2}:\d{2})\b")
_ONLINE_RE = re.compile(r"\b(online|remote|virtual|zoom)\b", re.I)
_CAMPUS_RE = re.compile(r"\b(on[\s-]?campus|in[\s-]person)\b", re.I)


def extract_skill(message: str) -> Optional[str]:
    found = []
    for skill, pattern in _SKILL_PATTERNS:
        m = pattern.search(message or "")
        if m:
            found.append((m.start(), skill))
    if not found:
        return None
    found.sort(key=lambda x: x[0])
    return found[0][1]


def extract_day(message: str) -> Optional[str]:
    m = _DAY_RE.search(message or "")
    return m.group(1).capitalize() if m else None


def extract_time(message: str) -> Optional[str]:
    m = _TIME_RE.search(message or "")
    return m.group(1) if m else None


def extract_mode(message: str) -> Optional[TutorMode]:
    text = message or ""
    if _CAMPUS_RE.search(text):
        return TutorMode.on_campus
    if _ONLINE_RE.search(text):
        return TutorMode.online
    return None


def extract_match_request(message: str) -> Optional[MatchRequest]:
    """Build a MatchRequest from a chat message, or None when no skill is named."""
    skill = extract_skill(message)
    if not skill:
        return None
    return MatchRequest(
        skill=skill,
        day=extract_day(message),
        time=extract_time(message),
        mode=extract_mode(message),
    )


def request_fields(request: MatchRequest) -> Dict[str, Any]:
    return {
        "skill": request.skill,
        "day": request.day,
        "time": request.time,
        "mode": request.mode.value if request.mode else None,
    }
