from tutor_scheduler.config import Settings
from tutor_scheduler.data.repository import SqlTutorRepository
from tutor_scheduler.models.session import GREETING
from tutor_scheduler.retrieval.factory import build_pipeline

from .fakes import ScriptedBackend, make_pipeline

BASE = "https://calendly.com/cs-tutor-squad/30min/"


def test_healthz_and_metrics(client):
    assert client.get("/healthz").json() == {"status": "ok"}

    client.get("/api/tutors")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "http_requests_total" in r.text


def test_list_and_get_tutors(client):
    tutors = client.get("/api/tutors").json()

    assert [t["id"] for t in tutors] == [1, 2, 3, 4]
    assert tutors[2]["mode"] == "on campus"
    assert tutors[0]["availability"][0] == {"day": "Monday", "time": "9:30-10:00", "mode": "online"}

    assert client.get("/api/tutors/2").json()["name"] == "Mei O"


def test_unknown_tutor_error_body(client):
    r = client.get("/api/tutors/99")

    assert r.status_code == 404
    assert r.json() == {"error": "Not Found", "message": "Tutor with ID 99 not found", "statusCode": 404}


def test_availability(client):
    rows = client.get("/api/availability").json()

    assert len(rows) == 4
    assert rows[1]["tutor"]["name"] == "Mei O"
    assert len(rows[1]["availability"]) == 3


def test_match_requires_skill(client):
    r = client.post("/api/match", json={"day": "Monday"})

    assert r.status_code == 400
    assert r.json()["error"] == "Bad Request"


def test_match_not_found(client):
    r = client.post("/api/match", json={"skill": "Haskell"})

    assert r.status_code == 404
    assert r.json()["statusCode"] == 404


def test_match_best_candidate(client):
    r = client.post("/api/match", json={"skill": "Linux"})

    assert r.status_code == 200
    body = r.json()
    assert body["tutor"]["name"] == "Mei O"
    assert body["matchScore"] == 0.5
    assert body["reasoning"] == "keyword/availability match"
    assert len(body["availableSlots"]) == 3


def test_match_all(client):
    assert client.post("/api/tutors/match-all", json={"skill": "Haskell"}).json() == []

    r = client.post("/api/tutors/match-all", json={"skill": ["Debugging"], "mode": "on-campus"})
    assert [c["tutor"]["id"] for c in r.json()] == [4]


def _booking_body(**overrides):
    body = {
        "tutorId": 2,
        "day": "tuesday",
        "time": "11:00-11:30",
        "studentName": "Jane Doe",
        "studentEmail": "jane@example.com",
        "ccsfEmail": "jane@mail.ccsf.edu",
        "allowOtherStudents": True,
        "classes": ["110A"],
        "specificHelp": "loops",
    }
    body.update(overrides)
    return body


def test_book_validates_input(client):
    missing = client.post("/api/book", json=_booking_body(ccsfEmail=""))
    assert missing.status_code == 400
    assert "ccsfEmail" in missing.json()["message"]

    unknown = client.post("/api/book", json=_booking_body(tutorId=42))
    assert unknown.status_code == 404

    taken = client.post("/api/book", json=_booking_body(time="3:00-3:30"))
    assert taken.status_code == 400
    assert taken.json()["message"] == "Requested time slot is not available"


def test_book_returns_scheduling_link(client):
    r = client.post("/api/book", json=_booking_body())

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["schedulingUrl"].startswith(BASE)
    assert "T11:00:00-08:00?back=1&month=" in body["schedulingUrl"]
    assert body["sessionDetails"] == {"tutor": "Mei O", "day": "Tuesday", "time": "11:00-11:30", "mode": "online"}


def test_session_endpoints(client):
    session = client.get("/api/chat/session/abc").json()
    assert session["id"] == "abc"
    assert [m["content"] for m in session["messages"]] == [GREETING]

    r = client.post("/api/chat/session/abc/messages", json={"role": "user", "content": "hi"})
    assert r.json()["success"] is True
    assert r.json()["message"]["content"] == "hi"

    messages = client.get("/api/chat/session/abc/messages").json()
    assert [m["role"] for m in messages] == ["assistant", "user"]

    reset = client.post("/api/chat/session/abc/reset").json()
    assert len(reset["messages"]) == 1


def test_put_session_is_append_only(client):
    messages = client.get("/api/chat/session/abc/messages").json()

    extended = client.put(
        "/api/chat/session/abc",
        json={"messages": messages + [{"role": "user", "content": "Java please"}]},
    )
    assert extended.status_code == 200
    assert extended.json()["messages"][-1]["content"] == "Java please"

    rewritten = client.put("/api/chat/session/abc", json={"messages": [{"role": "user", "content": "x"}]})
    assert rewritten.status_code == 400
    assert len(client.get("/api/chat/session/abc/messages").json()) == 2


def test_chat_flow(client):
    first = client.post("/chat", json={"message": "I need help with Linux"}).json()
    session_id = first["sessionId"]

    assert session_id
    assert [c["tutor"]["name"] for c in first["candidates"]] == ["Mei O"]
    assert first["bookingInfo"] is None

    second = client.post("/chat", json={"sessionId": session_id, "message": "book"}).json()
    assert second["bookingInfo"]["step"] == "name-email"
    assert second["bookingInfo"]["tutorId"] == 2

    stored = client.get(f"/api/chat/session/{session_id}").json()
    assert len(stored["messages"]) == 5
    assert stored["bookingInfo"]["step"] == "name-email"


def test_put_session_rejects_booking_step_going_back(client):
    slot = {"day": "Friday", "time": "11:00-11:30", "mode": "on campus"}

    ahead = client.put("/api/chat/session/abc", json={"bookingInfo": {"step": "classes", "tutorId": 3, "slot": slot}})
    assert ahead.status_code == 200

    back = client.put("/api/chat/session/abc", json={"bookingInfo": {"step": "student-id", "tutorId": 3, "slot": slot}})
    assert back.status_code == 400
    assert client.get("/api/chat/session/abc").json()["bookingInfo"]["step"] == "classes"


def test_match_prefers_semantic_hit(client, use_pipeline, repository):
    use_pipeline(make_pipeline(repository, ScriptedBackend([(2, 0.8)])))

    best = client.post("/api/match", json={"skill": "Python"}).json()
    assert best["tutor"]["name"] == "Mei O"
    assert best["matchScore"] == 0.8
    assert best["reasoning"] == "semantic similarity"

    everyone = client.post("/api/tutors/match-all", json={"skill": "Python"}).json()
    assert [c["tutor"]["id"] for c in everyone][0] == 2
    assert len(everyone) == 4
    assert {c["reasoning"] for c in everyone[1:]} == {"keyword/availability match"}
    assert {c["matchScore"] for c in everyone[1:]} == {0.5}


def test_match_with_mock_embeddings(client, use_pipeline, repository):
    use_pipeline(build_pipeline(Settings(embed_provider="mock", redis_url="", vector_index_path=""), repository))

    assert client.post("/api/match", json={"skill": "Haskell"}).status_code == 404

    best = client.post("/api/match", json={"skill": "Linux"}).json()
    assert best["tutor"]["id"] == 2
    assert best["reasoning"] == "semantic similarity"


def test_roster_failure_is_a_generic_500(client, tmp_path):
    from tutor_scheduler.server import app, get_repository

    broken = SqlTutorRepository.from_url(f"sqlite:///{tmp_path / 'empty.db'}")
    app.dependency_overrides[get_repository] = lambda: broken

    r = client.get("/api/tutors")

    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error", "message": "An unexpected error occurred", "statusCode": 500}
