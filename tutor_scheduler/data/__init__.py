from .repository import (
    InMemoryTutorRepository,
    SqlTutorRepository,
    TutorRepository,
    build_tutor_repository,
)
from .roster import load_static_roster

__all__ = [
    "InMemoryTutorRepository",
    "SqlTutorRepository",
    "TutorRepository",
    "build_tutor_repository",
    "load_static_roster",
]
