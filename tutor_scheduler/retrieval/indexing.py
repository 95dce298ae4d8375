from __future__ import annotations

from typing import Iterable, List

import structlog

from tutor_scheduler.models.tutor import Tutor
from tutor_scheduler.providers.embeddings import EmbeddingProvider

from .vector_index import VectorIndex, tutor_vector_id

log = structlog.get_logger(__name__)


def index_tutors(
    tutors: Iterable[Tutor],
    provider: EmbeddingProvider,
    index: VectorIndex,
    batch_size: int = 32,
) -> int:
    """Embed each tutor's profile text and upsert it as `tutor-{id}`."""
    roster: List[Tutor] = list(tutors)
    n = 0
    for start in range(0, len(roster), batch_size):
        batch = roster[start : start + batch_size]
        vectors = provider.embed_batch([t.search_text() for t in batch])
        for tutor, vec in zip(batch, vectors):
            index.upsert(
                tutor_vector_id(tutor.id),
                vec,
                {"tutorId": tutor.id, "name": tutor.name, "skills": list(tutor.skills)},
            )
            n += 1
    log.info("tutors_indexed", count=n, provider=provider.name)
    return n
