from __future__ import annotations

import re
from typing import List, Optional, Tuple

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
CCSF_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@mail\.ccsf\.edu\b", re.I)
STUDENT_ID_RE = re.compile(r"^[A-Za-z]{1,3}\d{6,10}$")

_NAME_PATTERNS = [
    re.compile(r"name\s*(?:is)?\s*:\s*([^,\n]+)", re.I),
    re.compile(r"\bmy name is\s+([^,\n]+)", re.I),
    re.compile(r"\bi am\s+([^,\n]+)", re.I),
    re.compile(r"\bi'm\s+([^,\n]+)", re.I),
]
_TRAILING_EMAIL_LABEL = re.compile(r"\b(and\s+)?(my\s+)?(school\s+)?e-?mail(\s+is)?\s*:?\s*$", re.I)

YES_WORDS = {"yes", "y", "yeah", "yep", "sure", "ok", "okay", "yup"}
NO_WORDS = {"no", "n", "nope", "nah"}
NO_NOTES_WORDS = {"no", "skip", "none", "nothing"}
SAME_WORDS = {"same", "same one", "same email", "the same", "same as above"}

COURSE_CODES = (
    "110A", "110B", "110C", "111B", "111C", "131B", "150A", "155P", "160A", "160B",
    "195", "199", "211D", "211S", "231", "256", "260A", "270", "MATH 108", "MATH 115",
    "Other",
)


def _words(text: str) -> List[str]:
    return re.findall(r"[a-z]+", (text or "").lower())


def _bare(text: str) -> str:
    return " ".join(_words(text))


def _clean_name(raw: str, email: str) -> str:
    name = raw.split(email)[0]
    name = _TRAILING_EMAIL_LABEL.sub("", name.strip(" \t,;:-"))
    return name.strip(" \t,;:-")


def parse_name_email(text: str) -> Optional[Tuple[str, str]]:
    """(name, email) from "Name: X, Email: Y", "my name is X ..." or "X Y"."""
    m = EMAIL_RE.search(text or "")
    if not m:
        return None
    email = m.group(0)

    name = ""
    for pattern in _NAME_PATTERNS:
        nm = pattern.search(text)
        if nm:
            name = _clean_name(nm.group(1), email)
            if name:
                break
    if not name:
        name = _clean_name(text[: m.start()], email)

    if not name:
        return None
    return name, email


def is_ccsf_email(email: str) -> bool:
    return bool(CCSF_EMAIL_RE.fullmatch((email or "").strip()))


def parse_ccsf_email(text: str) -> Optional[str]:
    m = CCSF_EMAIL_RE.search(text or "")
    return m.group(0) if m else None


def parse_yes_no(text: str) -> Optional[bool]:
    words = set(_words(text))
    yes = bool(words & YES_WORDS)
    no = bool(words & NO_WORDS)
    if yes == no:
        return None
    return yes


def is_same_reply(text: str) -> bool:
    return _bare(text) in SAME_WORDS or parse_yes_no(text) is True


def parse_student_id(text: str) -> Tuple[bool, Optional[str]]:
    """(accepted, value). "skip" is accepted with no value."""
    s = (text or "").strip()
    if _bare(s) == "skip":
        return True, None
    if STUDENT_ID_RE.match(s):
        return True, s.upper()
    return False, None


def extract_classes(text: str) -> List[str]:
    upper = " ".join((text or "").upper().split())
    found = []
    for code in COURSE_CODES:
        body = r"\s*".join(re.escape(part) for part in code.upper().split())
        pattern = r"(?<![0-9A-Z])" + body + r"(?![0-9A-Z])"
        if re.search(pattern, upper):
            found.append(code)
    return found or ["Other"]


def is_no_notes(text: str) -> bool:
    return _bare(text) in NO_NOTES_WORDS
