from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from tutor_scheduler.data.repository import TutorRepository
from tutor_scheduler.models.match import MatchRequest
from tutor_scheduler.models.tutor import Tutor

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Strategy:
    name: str
    run: Callable[[], List[Tutor]]


def first_non_empty(strategies: Sequence[Strategy]) -> Tuple[Optional[str], List[Tutor]]:
    """Run strategies in order and return the first non-empty result.

    A strategy that raises is logged and counts as empty.
    """
    for s in strategies:
        try:
            found = s.run()
        except Exception as e:
            log.warning("fallback_strategy_failed", strategy=s.name, error=str(e))
            continue
        if found:
            log.info("fallback_strategy_selected", strategy=s.name, count=len(found))
            return s.name, found
    return None, []


class KeywordMatcher:
    def __init__(self, repository: TutorRepository):
        self.repository = repository

    def retrieve(self, request: MatchRequest) -> List[Tutor]:
        return self.repository.find_tutors_by_keyword(
            request.skill,
            day=request.day,
            time=request.time,
            mode=request.mode,
        )

    def retrieve_skill_only(self, request: MatchRequest) -> List[Tutor]:
        return self.repository.find_tutors_by_keyword(request.skill)

    def fallback_chain(self, request: MatchRequest) -> List[Strategy]:
        """Filtered search first, then skill-only."""
        chain = []
        if request.has_filters:
            chain.append(Strategy("keyword_filtered", lambda: self.retrieve(request)))
        chain.append(Strategy("keyword_skill_only", lambda: self.retrieve_skill_only(request)))
        return chain

    def union_chain(self, request: MatchRequest) -> List[Strategy]:
        return [Strategy("keyword_skill_only", lambda: self.retrieve_skill_only(request))]
