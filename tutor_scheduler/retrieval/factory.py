from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog

from tutor_scheduler.config import Settings
from tutor_scheduler.data.repository import TutorRepository, build_tutor_repository
from tutor_scheduler.providers.cache import Cache
from tutor_scheduler.providers.embeddings import EmbeddingProvider, build_embedding_provider

from .indexing import index_tutors
from .keyword import KeywordMatcher
from .pipeline import MatchPipeline
from .semantic import EmbeddingSearch, SemanticRetriever
from .vector_index import InMemoryVectorIndex

log = structlog.get_logger(__name__)


def build_vector_index(
    settings: Settings,
    repository: TutorRepository,
    provider: EmbeddingProvider,
) -> InMemoryVectorIndex:
    """Load a saved index when configured, otherwise embed the roster now."""
    path = settings.vector_index_path
    if path and Path(path).with_suffix(".npy").exists():
        return InMemoryVectorIndex.load(path)

    index = InMemoryVectorIndex()
    index_tutors(repository.list_all_tutors(), provider, index)
    return index


def build_pipeline(
    settings: Settings,
    repository: Optional[TutorRepository] = None,
) -> MatchPipeline:
    repository = repository or build_tutor_repository(settings)
    provider = build_embedding_provider(settings, cache=Cache(settings))
    index = build_vector_index(settings, repository, provider)

    return MatchPipeline(
        repository=repository,
        semantic=SemanticRetriever(
            EmbeddingSearch(provider, index),
            top_k=settings.match_top_k,
            min_score=settings.semantic_min_score,
        ),
        keyword=KeywordMatcher(repository),
        top_k=settings.match_top_k,
        keyword_score=settings.keyword_default_score,
    )
