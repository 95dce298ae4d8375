#!/usr/bin/env python3
"""Embed the tutor roster and write the vector index.

Usage:
  EMBED_PROVIDER=openai OPENAI_API_KEY=... python scripts/seed_index.py --out data/tutor_index
  TUTOR_DATABASE_URL=sqlite:///data/tutors.db python scripts/seed_index.py --seed-db
"""

from __future__ import annotations

import argparse

import structlog

from tutor_scheduler.config import settings
from tutor_scheduler.data.repository import SqlTutorRepository, build_tutor_repository
from tutor_scheduler.data.roster import load_static_roster
from tutor_scheduler.providers.embeddings import build_embedding_provider
from tutor_scheduler.retrieval.indexing import index_tutors
from tutor_scheduler.retrieval.vector_index import InMemoryVectorIndex
from tutor_scheduler.telemetry import configure_logging

log = structlog.get_logger("seed_index")


def main() -> int:
    ap = argparse.ArgumentParser(description="Build the tutor vector index")
    ap.add_argument("--out", default=settings.vector_index_path or "data/tutor_index")
    ap.add_argument("--batch-size", type=int, default=32)
    ap.add_argument(
        "--seed-db",
        action="store_true",
        help="Create the tutor schema at TUTOR_DATABASE_URL and load the seeded roster first.",
    )
    args = ap.parse_args()

    configure_logging(settings.service_name, settings.log_level)

    if args.seed_db:
        if not settings.tutor_database_url:
            ap.error("--seed-db needs TUTOR_DATABASE_URL")
        sql_repo = SqlTutorRepository.from_url(settings.tutor_database_url)
        sql_repo.create_schema()
        sql_repo.seed(load_static_roster())

    repository = build_tutor_repository(settings)
    provider = build_embedding_provider(settings)
    index = InMemoryVectorIndex()

    n = index_tutors(repository.list_all_tutors(), provider, index, batch_size=args.batch_size)
    index.save(args.out)
    log.info("seed_index_complete", tutors=n, out=args.out)
    print(f"Indexed {n} tutors into {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
