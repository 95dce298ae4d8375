# tutor_scheduler/session_store.py
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Protocol

import structlog

from .config import Settings
from .errors import ValidationError
from .models.match import MatchCandidate
from .models.session import BookingInfo, BookingStep, ChatMessage, ChatSession, Role

log = structlog.get_logger(__name__)


class SessionStore(Protocol):
    def get(self, session_id: str) -> ChatSession:
        """Return the session, creating it with the greeting if absent."""
        ...

    def put(self, session_id: str, session: ChatSession) -> None: ...

    def reset(self, session_id: str) -> ChatSession: ...


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, str] = {}

    def get(self, session_id: str) -> ChatSession:
        raw = self._sessions.get(session_id)
        if raw is None:
            session = ChatSession(id=session_id)
            self.put(session_id, session)
            return session
        # Stored serialized: every get returns a fresh copy.
        return ChatSession.model_validate_json(raw)

    def put(self, session_id: str, session: ChatSession) -> None:
        session.touch()
        self._sessions[session_id] = session.model_dump_json(by_alias=True)

    def reset(self, session_id: str) -> ChatSession:
        session = ChatSession(id=session_id)
        self.put(session_id, session)
        return session


class SqliteSessionStore:
    """One JSON blob per session id."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                state_json TEXT NOT NULL
            )
            """
        )
        return conn

    def _load(self, session_id: str) -> Optional[ChatSession]:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT state_json FROM sessions WHERE id = ?", (session_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            return None
        return ChatSession.model_validate_json(row[0])

    def get(self, session_id: str) -> ChatSession:
        session = self._load(session_id)
        if session is None:
            session = ChatSession(id=session_id)
            self.put(session_id, session)
            log.info("session_created", session_id=session_id)
        return session

    def put(self, session_id: str, session: ChatSession) -> None:
        session.touch()
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO sessions (id, state_json) VALUES (?, ?)",
                (session_id, session.model_dump_json(by_alias=True)),
            )
            conn.commit()
        finally:
            conn.close()

    def reset(self, session_id: str) -> ChatSession:
        session = ChatSession(id=session_id)
        self.put(session_id, session)
        log.info("session_reset", session_id=session_id)
        return session


def build_session_store(settings: Settings) -> SessionStore:
    if settings.session_backend.lower() == "sqlite":
        log.info("session_store", backend="sqlite", path=settings.session_db_path)
        return SqliteSessionStore(settings.session_db_path)
    log.info("session_store", backend="memory")
    return InMemorySessionStore()


# ------------------------------------------------------------------
# Transcript operations
# ------------------------------------------------------------------

def get_messages(store: SessionStore, session_id: str) -> List[ChatMessage]:
    return store.get(session_id).messages


def append_message(
    store: SessionStore,
    session_id: str,
    role: Role,
    content: str,
    tutor_match: Optional[MatchCandidate] = None,
) -> ChatMessage:
    session = store.get(session_id)
    message = session.append(role, content, tutor_match=tutor_match)
    store.put(session_id, session)
    return message


def _extends(current: List[ChatMessage], proposed: List[ChatMessage]) -> bool:
    if len(proposed) < len(current):
        return False
    return all(
        a.role == b.role and a.content == b.content
        for a, b in zip(current, proposed)
    )


_STATE_FIELDS = ("messages", "pending_match", "last_search_criteria", "available_tutors_list", "booking_info")

_STEP_ORDER = {step: i for i, step in enumerate(BookingStep)}


def _moves_backward(current: Optional[BookingInfo], proposed: Optional[BookingInfo]) -> bool:
    """A stored booking may only advance. Clearing it or restarting at name-email is allowed."""
    if current is None or proposed is None or proposed.step == BookingStep.name_email:
        return False
    return _STEP_ORDER[proposed.step] < _STEP_ORDER[current.step]


def update_state(store: SessionStore, session_id: str, **fields: Any) -> ChatSession:
    """Partial update of session state.

    `messages` is append-only: a replacement must keep every current message
    as a prefix.
    """
    unknown = set(fields) - set(_STATE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown session fields: {', '.join(sorted(unknown))}")

    session = store.get(session_id)
    if "messages" in fields:
        proposed = fields["messages"] or []
        if not _extends(session.messages, proposed):
            raise ValidationError("messages may only be extended, not rewritten")
        session.messages = list(proposed)
    if "booking_info" in fields and _moves_backward(session.booking_info, fields["booking_info"]):
        raise ValidationError("booking step may not move backward")
    if "pending_match" in fields:
        session.pending_match = fields["pending_match"]
    if "last_search_criteria" in fields:
        session.last_search_criteria = fields["last_search_criteria"]
    if "available_tutors_list" in fields:
        session.available_tutors_list = list(fields["available_tutors_list"] or [])
    if "booking_info" in fields:
        session.booking_info = fields["booking_info"]

    store.put(session_id, session)
    return session


__all__ = [
    "InMemorySessionStore",
    "SessionStore",
    "SqliteSessionStore",
    "append_message",
    "build_session_store",
    "get_messages",
    "update_state",
]
