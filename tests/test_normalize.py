import pytest

from tutor_scheduler.errors import ValidationError
from tutor_scheduler.models import MatchRequestIn, TutorMode
from tutor_scheduler.retrieval.normalize import (
    extract_match_request,
    extract_mode,
    extract_skill,
    normalize_request,
)

from .fakes import ScriptedBackend, make_pipeline


@pytest.mark.parametrize("raw", [{}, {"skill": ""}, {"skill": "   "}, {"skill": []}, {"skill": None}])
def test_missing_skill_is_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_request(raw)


def test_missing_skill_fails_before_any_retrieval(repository):
    backend = ScriptedBackend([(1, 0.9)])
    pipeline = make_pipeline(repository, backend)

    with pytest.raises(ValidationError):
        pipeline.match_tutors({"skill": "  ", "day": "Monday"})

    assert backend.calls == []


def test_list_skill_is_joined_and_fields_trimmed():
    req = normalize_request({"skill": ["Python", " Java "], "day": " Monday ", "time": "", "mode": "on-campus"})

    assert req.skill == "Python, Java"
    assert req.day == "Monday"
    assert req.time is None
    assert req.mode == TutorMode.on_campus


def test_accepts_wire_model():
    req = normalize_request(MatchRequestIn(skill="SQL", mode="Online"))
    assert req.skill == "SQL"
    assert req.mode == TutorMode.online


def test_unknown_mode_is_a_validation_error():
    with pytest.raises(ValidationError):
        normalize_request({"skill": "Python", "mode": "by carrier pigeon"})


def test_extracts_request_from_chat_message():
    req = extract_match_request("Looking for a Java tutor on monday around 10:00, on campus please")

    assert req is not None
    assert req.skill == "Java"
    assert req.day == "Monday"
    assert req.time == "10:00"
    assert req.mode == TutorMode.on_campus


def test_skill_extraction_prefers_first_mention_and_whole_words():
    assert extract_skill("help with javascript") == "JavaScript"
    assert extract_skill("my cpp homework, also some python") == "C++"
    assert extract_skill("C++ pointers") == "C++"
    assert extract_skill("I need a tutor") is None
    assert extract_match_request("hello there") is None


def test_mode_extraction():
    assert extract_mode("online is best") == TutorMode.online
    assert extract_mode("on-campus only") == TutorMode.on_campus
    assert extract_mode("whenever") is None
