from datetime import datetime
from typing import List

from tutor_scheduler.errors import UpstreamUnavailable
from tutor_scheduler.retrieval.keyword import KeywordMatcher
from tutor_scheduler.retrieval.pipeline import MatchPipeline
from tutor_scheduler.retrieval.semantic import ScoredTutor, SemanticRetriever

# Monday 2025-01-06, noon
FIXED_NOW = datetime(2025, 1, 6, 12, 0)


class ScriptedBackend:
    """Returns canned (tutor_id, score) hits and records every call."""

    def __init__(self, hits=None):
        self.hits = [ScoredTutor(tutor_id=i, score=s) for i, s in (hits or [])]
        self.calls: List[dict] = []

    def embed_and_search(self, text, day=None, time=None, mode=None, top_k=20):
        self.calls.append({"text": text, "day": day, "time": time, "mode": mode, "top_k": top_k})
        return list(self.hits)


class FailingBackend:
    def __init__(self, code: str = "embedding_failed"):
        self.code = code
        self.calls = 0

    def embed_and_search(self, text, day=None, time=None, mode=None, top_k=20):
        self.calls += 1
        raise UpstreamUnavailable(self.code, "provider_down")


def make_pipeline(repository, backend, min_score: float = 0.0) -> MatchPipeline:
    return MatchPipeline(
        repository=repository,
        semantic=SemanticRetriever(backend, min_score=min_score),
        keyword=KeywordMatcher(repository),
    )
