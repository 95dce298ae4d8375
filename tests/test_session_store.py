import pytest

from tutor_scheduler.config import Settings
from tutor_scheduler.errors import ValidationError
from tutor_scheduler.models import BookingInfo, BookingStep, ChatMessage, Role, Slot
from tutor_scheduler.models.session import GREETING
from tutor_scheduler.session_store import (
    InMemorySessionStore,
    SqliteSessionStore,
    append_message,
    build_session_store,
    get_messages,
    update_state,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "sqlite":
        return SqliteSessionStore(str(tmp_path / "sessions.db"))
    return InMemorySessionStore()


def _booking():
    return BookingInfo(
        step=BookingStep.student_id,
        tutor_id=3,
        student_name="Jane",
        student_email="jane@example.com",
        slot=Slot(day="Friday", time="11:00-11:30", mode="on campus"),
    )


def test_new_session_starts_with_greeting(store):
    session = store.get("s1")

    assert session.id == "s1"
    assert len(session.messages) == 1
    assert session.messages[0].role == Role.assistant
    assert session.messages[0].content == GREETING
    assert session.booking_info is None


def test_put_then_get_round_trips_state(store):
    session = store.get("s1")
    session.append(Role.user, "I need help with SQL")
    session.booking_info = _booking()
    store.put("s1", session)

    loaded = store.get("s1")

    assert [m.content for m in loaded.messages] == [GREETING, "I need help with SQL"]
    assert loaded.booking_info == session.booking_info
    assert loaded.last_accessed_at >= loaded.created_at


def test_reset_discards_state(store):
    session = store.get("s1")
    session.append(Role.user, "hello")
    session.booking_info = _booking()
    store.put("s1", session)

    fresh = store.reset("s1")

    assert fresh.booking_info is None
    assert [m.content for m in store.get("s1").messages] == [GREETING]


def test_sessions_are_isolated(store):
    append_message(store, "a", Role.user, "for a")

    assert len(get_messages(store, "a")) == 2
    assert len(get_messages(store, "b")) == 1


def test_update_state_accepts_extended_messages(store):
    current = get_messages(store, "s1")
    proposed = current + [ChatMessage(role=Role.user, content="Python please")]

    updated = update_state(store, "s1", messages=proposed, booking_info=_booking())

    assert [m.content for m in updated.messages][-1] == "Python please"
    assert store.get("s1").booking_info.step == BookingStep.student_id


def test_update_state_rejects_rewritten_history(store):
    append_message(store, "s1", Role.user, "first draft")

    rewritten = [
        ChatMessage(role=Role.assistant, content=GREETING),
        ChatMessage(role=Role.user, content="edited"),
    ]
    with pytest.raises(ValidationError):
        update_state(store, "s1", messages=rewritten)
    with pytest.raises(ValidationError):
        update_state(store, "s1", messages=[])

    assert get_messages(store, "s1")[-1].content == "first draft"


def test_update_state_rejects_unknown_fields(store):
    with pytest.raises(ValidationError):
        update_state(store, "s1", created_at=0)


def test_build_session_store_backends(tmp_path):
    assert isinstance(build_session_store(Settings(session_backend="memory")), InMemorySessionStore)

    sqlite_store = build_session_store(
        Settings(session_backend="sqlite", session_db_path=str(tmp_path / "s.db"))
    )
    assert isinstance(sqlite_store, SqliteSessionStore)


def test_update_state_keeps_booking_step_moving_forward(store):
    update_state(store, "s1", booking_info=_booking().model_copy(update={"step": BookingStep.classes}))

    with pytest.raises(ValidationError):
        update_state(store, "s1", booking_info=_booking().model_copy(update={"step": BookingStep.ccsf_email}))
    assert store.get("s1").booking_info.step == BookingStep.classes

    advanced = update_state(store, "s1", booking_info=_booking().model_copy(update={"step": BookingStep.specific_help}))
    assert advanced.booking_info.step == BookingStep.specific_help

    restarted = update_state(store, "s1", booking_info=_booking().model_copy(update={"step": BookingStep.name_email}))
    assert restarted.booking_info.step == BookingStep.name_email

    assert update_state(store, "s1", booking_info=None).booking_info is None
