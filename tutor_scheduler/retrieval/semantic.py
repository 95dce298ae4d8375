from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

import structlog

from tutor_scheduler.errors import UpstreamUnavailable
from tutor_scheduler.models.match import MatchRequest
from tutor_scheduler.models.tutor import TutorMode
from tutor_scheduler.providers.embeddings import EmbeddingProvider
from tutor_scheduler.telemetry.metrics import UPSTREAM_FAILURES

from .vector_index import VectorIndex

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ScoredTutor:
    tutor_id: int
    score: float


class SearchBackend(Protocol):
    def embed_and_search(
        self,
        text: str,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
        top_k: int = 20,
    ) -> List[ScoredTutor]: ...


def build_query_text(
    skill: str,
    day: Optional[str] = None,
    time: Optional[str] = None,
    mode: Optional[TutorMode] = None,
) -> str:
    lines = [f"Student needs help with: {skill}"]
    if day:
        lines.append(f"Preferred day: {day}")
    if time:
        lines.append(f"Preferred time: {time}")
    if mode:
        lines.append(f"Preferred mode: {mode.value}")
    return "\n".join(lines)


class EmbeddingSearch:
    """Embeds the query text and searches the tutor vector index."""

    def __init__(self, provider: EmbeddingProvider, index: VectorIndex):
        self.provider = provider
        self.index = index

    def embed_and_search(
        self,
        text: str,
        day: Optional[str] = None,
        time: Optional[str] = None,
        mode: Optional[TutorMode] = None,
        top_k: int = 20,
    ) -> List[ScoredTutor]:
        query = build_query_text(text, day=day, time=time, mode=mode)
        try:
            vec = self.provider.embed(query)
        except Exception as e:
            raise UpstreamUnavailable("embedding_failed", f"Embedding provider failed: {e}") from e

        try:
            hits = self.index.query(vec, top_k)
        except Exception as e:
            raise UpstreamUnavailable("vector_search_failed", f"Vector search failed: {e}") from e

        out: List[ScoredTutor] = []
        for h in hits:
            tutor_id = h.metadata.get("tutorId")
            if tutor_id is None:
                continue
            out.append(ScoredTutor(tutor_id=int(tutor_id), score=float(h.score)))
        return out


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, x))


class SemanticRetriever:
    def __init__(self, backend: SearchBackend, top_k: int = 20, min_score: float = 0.0):
        self.backend = backend
        self.top_k = top_k
        self.min_score = min_score

    def retrieve(self, request: MatchRequest, top_k: Optional[int] = None) -> List[ScoredTutor]:
        """Ranked (tutor_id, score) pairs, best first.

        One attempt per call. Upstream failures are logged, counted and
        returned as an empty list. Hits below `min_score` are dropped.
        """
        try:
            raw = self.backend.embed_and_search(
                request.skill,
                day=request.day,
                time=request.time,
                mode=request.mode,
                top_k=top_k or self.top_k,
            )
        except UpstreamUnavailable as e:
            UPSTREAM_FAILURES.labels(code=e.code).inc()
            log.warning("semantic_retrieval_failed", code=e.code, error=e.message)
            return []
        except Exception as e:
            UPSTREAM_FAILURES.labels(code="unexpected").inc()
            log.warning("semantic_retrieval_failed", code="unexpected", error=str(e))
            return []

        seen = set()
        hits: List[ScoredTutor] = []
        for h in raw:
            if h.tutor_id in seen:
                continue
            seen.add(h.tutor_id)
            score = _clamp(h.score)
            if score < self.min_score:
                continue
            hits.append(ScoredTutor(tutor_id=h.tutor_id, score=score))

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits
