from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tutor_scheduler.config import Settings
from tutor_scheduler.errors import InternalError
from tutor_scheduler.models.tutor import Slot, Tutor, TutorMode

from .db import get_engine, session_scope
from .roster import load_static_roster
from .search import keyword_filter

log = structlog.get_logger(__name__)


class TutorRepository(Protocol):
    def list_all_tutors(self) -> List[Tutor]: ...

    def get_tutor_by_id(self, tutor_id: int) -> Optional[Tutor]: ...

    def find_tutors_by_keyword(
        self,
        skill: str,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
    ) -> List[Tutor]: ...


class InMemoryTutorRepository:
    """Roster held in process. Order of the input list is the roster order."""

    def __init__(self, tutors: Optional[Iterable[Tutor]] = None):
        self._tutors: List[Tutor] = list(tutors) if tutors is not None else load_static_roster()
        self._by_id: Dict[int, Tutor] = {t.id: t for t in self._tutors}

    def list_all_tutors(self) -> List[Tutor]:
        return list(self._tutors)

    def get_tutor_by_id(self, tutor_id: int) -> Optional[Tutor]:
        return self._by_id.get(tutor_id)

    def find_tutors_by_keyword(
        self,
        skill: str,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
    ) -> List[Tutor]:
        return keyword_filter(self._tutors, skill, day=day, time=time, mode=mode)


# ============================================================
# SQL-backed roster
# ============================================================

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS tutors (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        pronouns TEXT,
        bio TEXT NOT NULL DEFAULT '',
        mode TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS skills (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tutor_skills (
        tutor_id INTEGER NOT NULL REFERENCES tutors(id) ON DELETE CASCADE,
        skill_id INTEGER NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
        PRIMARY KEY (tutor_id, skill_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS availability (
        id INTEGER PRIMARY KEY,
        tutor_id INTEGER NOT NULL REFERENCES tutors(id) ON DELETE CASCADE,
        day TEXT NOT NULL,
        time TEXT NOT NULL,
        mode TEXT NOT NULL
    )
    """,
]

_DAY_ORDER_SQL = """
    CASE day
        WHEN 'Monday' THEN 1
        WHEN 'Tuesday' THEN 2
        WHEN 'Wednesday' THEN 3
        WHEN 'Thursday' THEN 4
        WHEN 'Friday' THEN 5
        WHEN 'Saturday' THEN 6
        WHEN 'Sunday' THEN 7
        ELSE 8
    END
"""


class SqlTutorRepository:
    """Reads the tutors / skills / tutor_skills / availability schema.

    Every call loads the roster in three queries and assembles it in Python.
    Keyword search runs the in-memory matcher over the loaded rows.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "SqlTutorRepository":
        return cls(get_engine(url))

    def create_schema(self) -> None:
        with session_scope(self.engine) as s:
            for stmt in SCHEMA_STATEMENTS:
                s.execute(text(stmt))

    def seed(self, tutors: Iterable[Tutor]) -> int:
        """Insert tutors not already present. Returns how many were added."""
        n = 0
        with session_scope(self.engine) as s:
            for t in tutors:
                exists = s.execute(text("SELECT 1 FROM tutors WHERE id = :id"), {"id": t.id}).first()
                if exists is not None:
                    continue
                s.execute(
                    text(
                        "INSERT INTO tutors (id, name, pronouns, bio, mode) "
                        "VALUES (:id, :name, :pronouns, :bio, :mode)"
                    ),
                    {"id": t.id, "name": t.name, "pronouns": t.pronouns, "bio": t.bio, "mode": t.mode.value},
                )
                for skill in t.skills:
                    row = s.execute(text("SELECT id FROM skills WHERE name = :name"), {"name": skill}).first()
                    if row is None:
                        s.execute(text("INSERT INTO skills (name) VALUES (:name)"), {"name": skill})
                        row = s.execute(text("SELECT id FROM skills WHERE name = :name"), {"name": skill}).first()
                    s.execute(
                        text("INSERT INTO tutor_skills (tutor_id, skill_id) VALUES (:tid, :sid)"),
                        {"tid": t.id, "sid": row[0]},
                    )
                for slot in t.availability:
                    s.execute(
                        text(
                            "INSERT INTO availability (tutor_id, day, time, mode) "
                            "VALUES (:tid, :day, :time, :mode)"
                        ),
                        {"tid": t.id, "day": slot.day, "time": slot.time, "mode": slot.mode.value},
                    )
                n += 1
        log.info("tutor_roster_seeded", tutors=n)
        return n

    def _load(self, tutor_id: Optional[int] = None) -> List[Tutor]:
        where = " WHERE id = :tid" if tutor_id is not None else ""
        skill_where = " WHERE ts.tutor_id = :tid" if tutor_id is not None else ""
        slot_where = " WHERE tutor_id = :tid" if tutor_id is not None else ""
        params = {"tid": tutor_id} if tutor_id is not None else {}

        try:
            with session_scope(self.engine) as s:
                tutor_rows = s.execute(
                    text(f"SELECT id, name, pronouns, bio, mode FROM tutors{where} ORDER BY id"),
                    params,
                ).mappings().all()
                skill_rows = s.execute(
                    text(
                        "SELECT ts.tutor_id AS tutor_id, sk.name AS name "
                        "FROM tutor_skills ts JOIN skills sk ON sk.id = ts.skill_id"
                        f"{skill_where} ORDER BY ts.tutor_id, sk.id"
                    ),
                    params,
                ).mappings().all()
                slot_rows = s.execute(
                    text(
                        "SELECT tutor_id, day, time, mode FROM availability"
                        f"{slot_where} ORDER BY tutor_id, {_DAY_ORDER_SQL}, time"
                    ),
                    params,
                ).mappings().all()
        except SQLAlchemyError as e:
            log.error("tutor_roster_query_failed", error=str(e))
            raise InternalError("Tutor roster query failed") from e

        skills: Dict[int, List[str]] = defaultdict(list)
        for r in skill_rows:
            skills[r["tutor_id"]].append(r["name"])

        slots: Dict[int, List[Slot]] = defaultdict(list)
        for r in slot_rows:
            slots[r["tutor_id"]].append(Slot(day=r["day"], time=r["time"], mode=r["mode"]))

        return [
            Tutor(
                id=r["id"],
                name=r["name"],
                pronouns=r["pronouns"],
                bio=r["bio"] or "",
                mode=r["mode"],
                skills=skills.get(r["id"], []),
                availability=slots.get(r["id"], []),
            )
            for r in tutor_rows
        ]

    def list_all_tutors(self) -> List[Tutor]:
        return self._load()

    def get_tutor_by_id(self, tutor_id: int) -> Optional[Tutor]:
        rows = self._load(tutor_id)
        return rows[0] if rows else None

    def find_tutors_by_keyword(
        self,
        skill: str,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
    ) -> List[Tutor]:
        return keyword_filter(self._load(), skill, day=day, time=time, mode=mode)


def build_tutor_repository(settings: Settings) -> TutorRepository:
    if settings.tutor_database_url:
        log.info("tutor_repository", backend="sql")
        return SqlTutorRepository.from_url(settings.tutor_database_url)
    log.info("tutor_repository", backend="static")
    return InMemoryTutorRepository()
