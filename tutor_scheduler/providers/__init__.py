from .cache import Cache, InMemoryLRU
from .embeddings import (
    CachedEmbeddingProvider,
    EmbeddingProvider,
    MockEmbeddingProvider,
    OpenAIEmbeddingProvider,
    build_embedding_provider,
)

__all__ = [
    "Cache",
    "CachedEmbeddingProvider",
    "EmbeddingProvider",
    "InMemoryLRU",
    "MockEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "build_embedding_provider",
]
