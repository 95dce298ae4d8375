from __future__ import annotations

from typing import Any, Dict, List

from tutor_scheduler.models.tutor import Tutor


# ============================================================
# SEEDED ROSTER (used when no tutor database is configured)
# ============================================================

STATIC_TUTORS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Aung Nanda O",
        "pronouns": "he/him",
        "bio": (
            "I also go by Nikki. Extrovert who enjoys helping others succeed. "
            "Skilled in Python, Java, JavaScript, React, HTML, CSS."
        ),
        "mode": "online",
        "skills": ["Python", "Java", "JavaScript", "React", "HTML", "CSS"],
        "availability": [
            {"day": "Monday", "time": "9:30-10:00", "mode": "online"},
            {"day": "Wednesday", "time": "4:00-4:30", "mode": "online"},
            {"day": "Wednesday", "time": "4:30-5:00", "mode": "online"},
        ],
    },
    {
        "id": 2,
        "name": "Mei O",
        "pronouns": "she/they",
        "bio": (
            "Aspiring AI & Linguistics researcher. Daily Arch Linux user. "
            "Passionate about Python, Linux, and machine learning concepts."
        ),
        "mode": "online",
        "skills": ["Python", "Linux", "Debugging"],
        "availability": [
            {"day": "Tuesday", "time": "11:00-11:30", "mode": "online"},
            {"day": "Tuesday", "time": "11:30-12:00", "mode": "online"},
            {"day": "Thursday", "time": "2:30-3:00", "mode": "online"},
        ],
    },
    {
        "id": 3,
        "name": "Chris H",
        "pronouns": "he/him",
        "bio": (
            "Problem solver and travel enthusiast. Experienced with Python, Java, "
            "SQL, JavaScript, CSS, and MIPS assembly."
        ),
        "mode": "on campus",
        "skills": ["Python", "Java", "SQL", "JavaScript", "CSS", "MIPS Assembly"],
        "availability": [
            {"day": "Monday", "time": "10:00-10:30", "mode": "on campus"},
            {"day": "Monday", "time": "10:30-11:00", "mode": "on campus"},
            {"day": "Friday", "time": "11:00-11:30", "mode": "on campus"},
        ],
    },
    {
        "id": 4,
        "name": "Claire C",
        "pronouns": None,
        "bio": (
            "Second-year CS major. Swimmer, pianist, and board game lover. "
            "Excited to tutor programming fundamentals."
        ),
        "mode": "on campus",
        "skills": ["Python", "C++", "Debugging"],
        "availability": [
            {"day": "Wednesday", "time": "9:30-10:00", "mode": "on campus"},
            {"day": "Wednesday", "time": "10:00-10:30", "mode": "on campus"},
            {"day": "Wednesday", "time": "7:00-7:30", "mode": "on campus"},
        ],
    },
]


def load_static_roster() -> List[Tutor]:
    return [Tutor.model_validate(t) for t in STATIC_TUTORS]
