from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = "local"
    service_name: str = "tutor-scheduler"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 9191

    # --- Embeddings
    embed_provider: str = Field(default="mock", description="mock | openai")
    openai_api_key: str = Field(default="")
    openai_embed_model: str = Field(default="text-embedding-3-small")
    embed_dim: int = Field(default=1024, description="Hashing buckets of the mock provider.")
    request_timeout_s: float = Field(default=20.0)
    vector_index_path: str = Field(
        default="",
        description="Saved tutor index written by scripts/seed_index.py. Empty embeds the roster at startup.",
    )

    # --- Matching
    match_top_k: int = Field(default=20, description="Semantic candidates requested per match.")
    semantic_min_score: float = Field(
        default=0.2,
        description="Semantic hits scoring below this are dropped before merging.",
    )
    keyword_default_score: float = Field(
        default=0.5,
        description="Score assigned to tutors found only through the keyword channel.",
    )

    # --- Tutor roster
    tutor_database_url: str = Field(
        default="",
        description="SQLAlchemy URL of the tutors/skills/availability schema. Empty uses the seeded roster.",
    )

    # --- Sessions
    session_backend: str = Field(default="memory", description="memory | sqlite")
    session_db_path: str = Field(default="/tmp/tutor_sessions.db")

    # --- Caching
    redis_url: str = Field(default="", description="Redis URL. When set, enables distributed caching.")
    cache_ttl_s: int = Field(default=600)
    cache_max_items: int = Field(default=10_000)

    # --- Scheduling link
    scheduling_base_url: str = Field(default="https://calendly.com/cs-tutor-squad/30min")
    scheduling_utc_offset: str = Field(
        default="-08:00",
        description="Fixed UTC offset appended to the scheduling link timestamp.",
    )

    # --- Observability
    otlp_endpoint: str = Field(default="", description="OTLP gRPC endpoint for traces. Empty logs spans to console.")


settings = Settings()


def get_settings() -> Settings:
    return settings
