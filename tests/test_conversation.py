import pytest

from tutor_scheduler.conversation import CLARIFY_REPLY, GREETING_REPLY, HELP_TEXT, handle_turn, select_candidate
from tutor_scheduler.models import BookingStep, ChatSession, Role
from tutor_scheduler.models.session import GREETING

from .fakes import FIXED_NOW, ScriptedBackend, make_pipeline


@pytest.fixture
def talk(keyword_only_pipeline, repository):
    def _talk(session, message):
        return handle_turn(session, message, keyword_only_pipeline, repository, now=FIXED_NOW)

    return _talk


def _run(talk, session, *messages):
    result = None
    for m in messages:
        result = talk(session, m)
        session = result.session
    return result


def test_greeting(talk):
    result = talk(ChatSession(id="c1"), "Hello!")

    assert result.intent == "greeting"
    assert result.reply == GREETING_REPLY
    assert [m.role for m in result.session.messages] == [Role.assistant, Role.user, Role.assistant]


def test_help_and_clarify(talk):
    assert talk(ChatSession(id="c1"), "help").reply == HELP_TEXT
    assert talk(ChatSession(id="c1"), "qwerty asdf").reply == CLARIFY_REPLY


def test_search_single_match(talk):
    result = talk(ChatSession(id="c1"), "I need help with Linux")

    assert result.intent == "search"
    assert [c.tutor.name for c in result.candidates] == ["Mei O"]
    assert "Mei O" in result.reply
    assert result.session.pending_match.tutor.id == 2
    assert result.session.last_search_criteria.skill == "Linux"
    assert result.session.messages[-1].tutor_match.tutor.id == 2


def test_handle_turn_does_not_mutate_input(talk):
    session = ChatSession(id="c1")

    talk(session, "Python tutor on Monday")

    assert len(session.messages) == 1
    assert session.available_tutors_list == []


def test_full_booking_conversation(talk):
    session = ChatSession(id="c1")
    started = _run(talk, session, "I need help with Linux", "book")

    assert started.intent == "booking_started"
    assert "Mei O" in started.reply
    assert started.session.booking_info.step == BookingStep.name_email

    result = _run(
        talk,
        started.session,
        "Name: Jane Doe, Email: jane@mail.ccsf.edu",
        "same",
        "skip",
        "yes",
        "131B",
        "Debugging a segfault",
        "no",
    )

    assert result.intent == "booking_complete"
    assert result.session.booking_info is None
    assert result.session.pending_match is None
    assert result.payload.student_id is None
    assert result.payload.classes == ["131B"]
    assert result.payload.scheduling_url == (
        "https://calendly.com/cs-tutor-squad/30min/2025-01-07T11:00:00-08:00"
        "?back=1&month=2025-01&date=2025-01-07"
    )
    assert result.payload.scheduling_url in result.reply


def test_invalid_answer_repeats_the_step(talk):
    started = _run(talk, ChatSession(id="c1"), "Linux help", "book")

    result = talk(started.session, "not telling")

    assert result.intent == "booking_step"
    assert result.session.booking_info.step == BookingStep.name_email
    assert "Name: [Your Name]" in result.reply


def test_cancel_during_booking(talk):
    started = _run(talk, ChatSession(id="c1"), "Linux help", "book")

    result = talk(started.session, "cancel")

    assert result.intent == "booking_cancelled"
    assert result.session.booking_info is None


def test_reset_returns_fresh_session(talk):
    busy = _run(talk, ChatSession(id="c1"), "Linux help", "book")

    result = talk(busy.session, "start over")

    assert result.intent == "reset"
    assert result.reply == GREETING
    assert [m.content for m in result.session.messages] == [GREETING]
    assert result.session.booking_info is None
    assert result.session.id == "c1"


def test_book_picks_named_tutor(talk):
    listed = talk(ChatSession(id="c1"), "Python tutor on Monday")
    assert sorted(c.tutor.name for c in listed.candidates) == ["Aung Nanda O", "Chris H"]

    result = talk(listed.session, "book with Chris")

    assert result.session.booking_info.tutor_id == 3
    assert result.session.booking_info.slot.day == "Monday"


def test_plain_book_picks_tutor_named_last(talk):
    listed = talk(ChatSession(id="c1"), "Python tutor on Monday")
    top = listed.candidates[0]

    assert listed.reply.rstrip().endswith(f"**{top.tutor.name}**.")
    assert select_candidate(listed.session, "yes").tutor.id == top.tutor.id


def test_book_with_day_and_time_picks_that_slot(talk):
    listed = talk(ChatSession(id="c1"), "Python tutor on Monday")

    result = talk(listed.session, "book Chris on Friday at 11:00")

    slot = result.session.booking_info.slot
    assert (slot.day, slot.time) == ("Friday", "11:00-11:30")


def test_other_tutors_widens_to_skill_only(talk):
    listed = talk(ChatSession(id="c1"), "Python tutor on Monday")

    result = talk(listed.session, "Are there any other tutors?")

    assert result.intent == "other_tutors"
    assert len(result.candidates) == 4


def test_other_tutors_without_context_asks_for_a_topic(talk):
    result = talk(ChatSession(id="c1"), "Any other tutors?")

    assert result.intent == "other_tutors"
    assert result.candidates == []


def test_semantic_hit_leads_the_list_and_gets_booked(repository):
    pipeline = make_pipeline(repository, ScriptedBackend([(3, 0.9)]))

    def talk(session, message):
        return handle_turn(session, message, pipeline, repository, now=FIXED_NOW)

    listed = talk(ChatSession(id="c1"), "I need a Python tutor")
    assert listed.candidates[0].tutor.name == "Chris H"
    assert listed.candidates[0].match_score == 0.9
    assert len(listed.candidates) == 4

    result = talk(listed.session, "book")

    assert result.intent == "booking_started"
    assert result.session.booking_info.tutor_id == 3


def test_help_during_booking_is_taken_as_the_answer(talk):
    at_help = _run(
        talk,
        ChatSession(id="c1"),
        "Linux help",
        "book",
        "Name: Jane Doe, Email: jane@mail.ccsf.edu",
        "same",
        "skip",
        "yes",
        "131B",
    )
    assert at_help.session.booking_info.step == BookingStep.specific_help

    answered = talk(at_help.session, "help")
    assert answered.intent == "booking_step"
    assert answered.session.booking_info.step == BookingStep.additional_notes

    done = talk(answered.session, "no")
    assert done.payload.specific_help == "help"


def test_book_with_a_new_skill_runs_a_search(talk):
    listed = talk(ChatSession(id="c1"), "I need help with Linux")

    result = talk(listed.session, "can I book a Java tutor on Monday?")

    assert result.intent == "search"
    assert result.session.booking_info is None
    assert sorted(c.tutor.name for c in result.candidates) == ["Aung Nanda O", "Chris H"]
    assert result.session.last_search_criteria.skill == "Java"


def test_book_inside_another_word_is_not_a_confirmation(talk):
    listed = talk(ChatSession(id="c1"), "I need help with Linux")

    result = talk(listed.session, "facebook")

    assert result.intent == "clarify"
    assert result.session.booking_info is None
