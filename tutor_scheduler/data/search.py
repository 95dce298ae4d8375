from __future__ import annotations

from typing import Iterable, List, Optional

from tutor_scheduler.models.tutor import Tutor, TutorMode

# Spellings of C++. Matched exactly, never as substrings.
_CPP_VARIANTS = {"c++", "cpp", "c plus plus"}


def normalize_skill(skill: str) -> str:
    s = " ".join(skill.strip().lower().split())
    if s in _CPP_VARIANTS:
        return "c++"
    return s


def skill_matches(tutor: Tutor, skill: str) -> bool:
    """Case-insensitive substring match of the skill against skills and bio."""
    wanted = normalize_skill(skill)
    if not wanted:
        return False

    for raw in tutor.skills:
        have = normalize_skill(raw)
        if wanted == "c++" or have == "c++":
            if wanted == have:
                return True
            continue
        if wanted in have or have in wanted:
            return True

    return wanted in tutor.bio.lower()


def has_availability(
    tutor: Tutor,
    day: Optional[str] = None,
    time: Optional[str] = None,
    mode: Optional[TutorMode] = None,
) -> bool:
    """Each supplied filter needs at least one slot satisfying it."""
    if day and not any(s.matches_day(day) for s in tutor.availability):
        return False
    if time and not any(s.matches_time(time) for s in tutor.availability):
        return False
    if mode and not any(s.matches_mode(mode) for s in tutor.availability):
        return False
    return True


def keyword_filter(
    tutors: Iterable[Tutor],
    skill: str,
    day: Optional[str] = None,
    time: Optional[str] = None,
    mode: Optional[TutorMode] = None,
) -> List[Tutor]:
    return [
        t
        for t in tutors
        if skill_matches(t, skill) and has_availability(t, day=day, time=time, mode=mode)
    ]
