from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

import structlog

from tutor_scheduler.models.match import MatchCandidate, MatchRequest
from tutor_scheduler.models.tutor import Tutor
from tutor_scheduler.telemetry.metrics import FILTER_REVERTS

from .semantic import ScoredTutor

log = structlog.get_logger(__name__)

SEMANTIC_REASONING = "semantic similarity"
KEYWORD_REASONING = "keyword/availability match"


@dataclass
class _Entry:
    tutor: Tutor
    score: float
    reasoning: str


def merge_sources(
    semantic_hits: Iterable[ScoredTutor],
    keyword_tutors: Iterable[Tutor],
    roster: Dict[int, Tutor],
    keyword_score: float = 0.5,
) -> List[_Entry]:
    """Union both channels keyed by tutor id. Semantic entries win."""
    merged: Dict[int, _Entry] = {}

    for hit in semantic_hits:
        tutor = roster.get(hit.tutor_id)
        if tutor is None:
            log.info("semantic_hit_unknown_tutor", tutor_id=hit.tutor_id)
            continue
        if hit.tutor_id not in merged:
            merged[hit.tutor_id] = _Entry(tutor, hit.score, SEMANTIC_REASONING)

    for tutor in keyword_tutors:
        if tutor.id not in merged:
            merged[tutor.id] = _Entry(tutor, keyword_score, KEYWORD_REASONING)

    return list(merged.values())


def _filter_with_revert(
    entries: List[_Entry],
    name: str,
    keep: Callable[[Tutor], bool],
) -> List[_Entry]:
    kept = [e for e in entries if keep(e.tutor)]
    if entries and not kept:
        FILTER_REVERTS.labels(filter=name).inc()
        log.info("filter_reverted", filter=name, candidates=len(entries))
        return entries
    return kept


def apply_filters(entries: List[_Entry], request: MatchRequest) -> List[_Entry]:
    out = entries
    if request.day:
        day = request.day
        out = _filter_with_revert(out, "day", lambda t: any(s.matches_day(day) for s in t.availability))
    if request.time:
        time = request.time
        out = _filter_with_revert(out, "time", lambda t: any(s.matches_time(time) for s in t.availability))
    if request.mode:
        mode = request.mode
        out = _filter_with_revert(out, "mode", lambda t: any(s.matches_mode(mode) for s in t.availability))
    return out


def to_candidate(entry: _Entry, request: MatchRequest) -> MatchCandidate:
    slots = list(entry.tutor.availability)
    if request.has_filters:
        subset = entry.tutor.slots_matching(request.day, request.time, request.mode)
        if subset:
            slots = subset
    return MatchCandidate(
        tutor=entry.tutor,
        match_score=entry.score,
        reasoning=entry.reasoning,
        available_slots=slots,
    )


def rank_candidates(
    semantic_hits: Iterable[ScoredTutor],
    keyword_tutors: Iterable[Tutor],
    roster: Dict[int, Tutor],
    request: MatchRequest,
    keyword_score: float = 0.5,
) -> List[MatchCandidate]:
    entries = merge_sources(semantic_hits, keyword_tutors, roster, keyword_score=keyword_score)
    entries = apply_filters(entries, request)
    candidates = [to_candidate(e, request) for e in entries]
    # sorted() is stable: equal scores keep merge order.
    return sorted(candidates, key=lambda c: c.match_score, reverse=True)
