from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

import structlog

from tutor_scheduler.data.repository import TutorRepository
from tutor_scheduler.models.match import MatchCandidate, MatchRequest, MatchRequestIn
from tutor_scheduler.telemetry.metrics import MATCH_LATENCY, MATCH_REQUESTS, RETRIEVAL_CHANNEL, timer
from tutor_scheduler.telemetry.tracing import get_tracer

from .keyword import KeywordMatcher, first_non_empty
from .normalize import normalize_request, request_fields
from .ranking import rank_candidates
from .semantic import SemanticRetriever

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

RawRequest = Union[MatchRequest, MatchRequestIn, Mapping[str, Any]]


@dataclass
class MatchPipeline:
    """Normalize, retrieve (semantic + keyword), merge, filter and rank.

    With semantic hits the keyword channel adds a skill-only search. Without
    them the keyword fallback chain (filtered, then skill-only) is the only
    source.
    """

    repository: TutorRepository
    semantic: SemanticRetriever
    keyword: KeywordMatcher
    top_k: int = 20
    keyword_score: float = 0.5

    def match_tutors(self, raw: RawRequest, top_k: Optional[int] = None) -> List[MatchCandidate]:
        request = normalize_request(raw)

        with tracer.start_as_current_span("match_tutors") as span, timer(MATCH_LATENCY):
            span.set_attribute("match.skill", request.skill)

            semantic_hits = self.semantic.retrieve(request, top_k=top_k or self.top_k)
            if semantic_hits:
                channel = "semantic"
                _, keyword_tutors = first_non_empty(self.keyword.union_chain(request))
            else:
                strategy, keyword_tutors = first_non_empty(self.keyword.fallback_chain(request))
                channel = strategy or "none"

            roster = {t.id: t for t in self.repository.list_all_tutors()}
            candidates = rank_candidates(
                semantic_hits,
                keyword_tutors,
                roster,
                request,
                keyword_score=self.keyword_score,
            )

            span.set_attribute("match.channel", channel)
            span.set_attribute("match.candidates", len(candidates))

        RETRIEVAL_CHANNEL.labels(strategy=channel).inc()
        MATCH_REQUESTS.labels(outcome="matched" if candidates else "no_match").inc()
        log.info(
            "match_completed",
            channel=channel,
            semantic_hits=len(semantic_hits),
            keyword_hits=len(keyword_tutors),
            candidates=len(candidates),
            **request_fields(request),
        )
        return candidates

    def best_match(self, raw: RawRequest) -> Optional[MatchCandidate]:
        candidates = self.match_tutors(raw)
        return candidates[0] if candidates else None
