from __future__ import annotations

import time
import uuid
from functools import lru_cache
from typing import List

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from .booking import build_scheduling_link
from .config import get_settings
from .conversation import handle_turn
from .data.repository import TutorRepository, build_tutor_repository
from .errors import NotFoundError, SchedulerError, ValidationError
from .models.chat import (
    ApiError,
    BookSessionRequest,
    BookSessionResponse,
    ChatRequest,
    ChatResponse,
    MessageAppended,
    MessageIn,
    SessionDetails,
    SessionUpdate,
    TutorAvailability,
)
from .models.match import MatchCandidate, MatchRequestIn
from .models.session import ChatMessage, ChatSession
from .models.tutor import Tutor
from .retrieval.factory import build_pipeline
from .retrieval.pipeline import MatchPipeline
from .session_store import SessionStore, append_message, build_session_store, get_messages, update_state
from .telemetry import configure_logging, configure_tracer
from .telemetry.metrics import HTTP_LATENCY, HTTP_REQUESTS

settings = get_settings()
configure_logging(settings.service_name, settings.log_level)
log = structlog.get_logger(__name__)

app = FastAPI(title="Tutor Scheduler")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    configure_tracer(settings.service_name, settings.otlp_endpoint or None)


# ------------------------------------------------------------------
# Dependencies (overridden in tests via app.dependency_overrides)
# ------------------------------------------------------------------

@lru_cache
def get_repository() -> TutorRepository:
    return build_tutor_repository(get_settings())


@lru_cache
def get_pipeline() -> MatchPipeline:
    return build_pipeline(get_settings(), repository=get_repository())


@lru_cache
def get_session_store() -> SessionStore:
    return build_session_store(get_settings())


# ------------------------------------------------------------------
# Errors and metrics
# ------------------------------------------------------------------

def _error_response(status_code: int, title: str, message: str) -> JSONResponse:
    body = ApiError(error=title, message=message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(SchedulerError)
async def scheduler_error_handler(request: Request, exc: SchedulerError):
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message)
        return _error_response(exc.status_code, exc.title, "An unexpected error occurred")
    return _error_response(exc.status_code, exc.title, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error_response(400, ValidationError.title, detail)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled_error", path=request.url.path)
    return _error_response(500, "Internal Server Error", "An unexpected error occurred")


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    method = request.method
    t0 = time.time()
    resp = await call_next(request)
    route = getattr(request.scope.get("route"), "path", request.url.path)
    HTTP_LATENCY.labels(route=route, method=method).observe(time.time() - t0)
    HTTP_REQUESTS.labels(route=route, method=method, status=str(resp.status_code)).inc()
    return resp


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


# ------------------------------------------------------------------
# Tutors and matching
# ------------------------------------------------------------------

@app.get("/api/tutors", response_model=List[Tutor])
def list_tutors(repository: TutorRepository = Depends(get_repository)):
    return repository.list_all_tutors()


@app.get("/api/tutors/{tutor_id}", response_model=Tutor)
def get_tutor(tutor_id: int, repository: TutorRepository = Depends(get_repository)):
    tutor = repository.get_tutor_by_id(tutor_id)
    if tutor is None:
        raise NotFoundError(f"Tutor with ID {tutor_id} not found")
    return tutor


@app.get("/api/availability", response_model=List[TutorAvailability])
def availability(repository: TutorRepository = Depends(get_repository)):
    return [TutorAvailability(tutor=t, availability=t.availability) for t in repository.list_all_tutors()]


@app.post("/api/match", response_model=MatchCandidate)
def match(payload: MatchRequestIn, pipeline: MatchPipeline = Depends(get_pipeline)):
    best = pipeline.best_match(payload)
    if best is None:
        raise NotFoundError("No tutor matches your request")
    return best


@app.post("/api/tutors/match-all", response_model=List[MatchCandidate])
def match_all(payload: MatchRequestIn, pipeline: MatchPipeline = Depends(get_pipeline)):
    return pipeline.match_tutors(payload)


@app.post("/api/book", response_model=BookSessionResponse)
def book(payload: BookSessionRequest, repository: TutorRepository = Depends(get_repository)):
    required = {
        "tutorId": payload.tutor_id,
        "day": payload.day,
        "time": payload.time,
        "studentName": payload.student_name,
        "studentEmail": payload.student_email,
        "ccsfEmail": payload.ccsf_email,
    }
    missing = [k for k, v in required.items() if v in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    tutor = repository.get_tutor_by_id(payload.tutor_id)
    if tutor is None:
        raise NotFoundError(f"Tutor with ID {payload.tutor_id} not found")

    slot = next(
        (s for s in tutor.availability if s.matches_day(payload.day) and s.time == payload.time.strip()),
        None,
    )
    if slot is None:
        raise ValidationError("Requested time slot is not available")

    url = build_scheduling_link(slot)
    log.info("booking_link_issued", tutor_id=tutor.id, day=slot.day, time=slot.time)
    return BookSessionResponse(
        success=True,
        scheduling_url=url,
        session_details=SessionDetails(tutor=tutor.name, day=slot.day, time=slot.time, mode=slot.mode),
    )


# ------------------------------------------------------------------
# Chat sessions
# ------------------------------------------------------------------

@app.get("/api/chat/session/{session_id}", response_model=ChatSession)
def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    return store.get(session_id)


@app.put("/api/chat/session/{session_id}", response_model=ChatSession)
def put_session(session_id: str, payload: SessionUpdate, store: SessionStore = Depends(get_session_store)):
    fields = {name: getattr(payload, name) for name in payload.model_fields_set}
    return update_state(store, session_id, **fields)


@app.get("/api/chat/session/{session_id}/messages", response_model=List[ChatMessage])
def list_messages(session_id: str, store: SessionStore = Depends(get_session_store)):
    return get_messages(store, session_id)


@app.post("/api/chat/session/{session_id}/messages", response_model=MessageAppended)
def post_message(session_id: str, payload: MessageIn, store: SessionStore = Depends(get_session_store)):
    message = append_message(store, session_id, payload.role, payload.content, tutor_match=payload.tutor_match)
    return MessageAppended(success=True, message=message)


@app.post("/api/chat/session/{session_id}/reset", response_model=ChatSession)
def reset_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    return store.reset(session_id)


# ------------------------------------------------------------------
# /chat – one conversation turn
# ------------------------------------------------------------------

@app.post("/chat", response_model=ChatResponse)
def chat(
    req: ChatRequest,
    pipeline: MatchPipeline = Depends(get_pipeline),
    repository: TutorRepository = Depends(get_repository),
    store: SessionStore = Depends(get_session_store),
) -> ChatResponse:
    session_id = req.session_id or uuid.uuid4().hex
    session = store.get(session_id)

    result = handle_turn(session, req.message, pipeline, repository)
    store.put(session_id, result.session)

    return ChatResponse(
        reply=result.reply,
        session_id=session_id,
        candidates=result.candidates,
        booking_info=result.session.booking_info,
        scheduling_url=result.payload.scheduling_url if result.payload else None,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tutor_scheduler.server:app", host=settings.host, port=settings.port)
