from __future__ import annotations

import hashlib
import re
from typing import List, Protocol

import httpx
import numpy as np
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from tutor_scheduler.config import Settings

from .cache import Cache

log = structlog.get_logger(__name__)

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"


class EmbeddingProvider(Protocol):
    name: str

    def embed(self, text: str) -> List[float]: ...

    def embed_batch(self, texts: List[str]) -> List[List[float]]: ...


def _clean(text: str) -> str:
    s = (text or "").strip()
    if len(s) < 3:
        s = "empty"
    return s


_TOKEN_RE = re.compile(r"[a-z][a-z0-9+#]*")

# Field labels and filler words in profile and query text.
_STOPWORDS = {
    "about", "also", "and", "availability", "bio", "day", "for", "help", "in", "mode",
    "needs", "of", "preferred", "pronouns", "skills", "student", "the", "time", "to",
    "tutor", "who", "with",
}


def _tokens(s: str) -> List[str]:
    return [t for t in _TOKEN_RE.findall(s.lower()) if len(t) > 1 and t not in _STOPWORDS]


def _hash_to_vec(s: str, dim: int) -> np.ndarray:
    """Signed feature hashing of word tokens. Shared words give positive cosine."""
    v = np.zeros(dim, dtype=np.float32)
    for tok in _tokens(s):
        digest = hashlib.sha256(tok.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:4], "big") % dim
        v[bucket] += 1.0 if digest[4] & 1 else -1.0
    v /= np.linalg.norm(v) + 1e-12
    return v


class MockEmbeddingProvider:
    """Deterministic bag-of-words embeddings. No network."""

    name = "mock"

    def __init__(self, dim: int = 384):
        self.dim = dim

    def embed(self, text: str) -> List[float]:
        return _hash_to_vec(_clean(text), self.dim).tolist()

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        return [self.embed(t) for t in texts]


class OpenAIEmbeddingProvider:
    name = "openai"

    def __init__(self, api_key: str, model: str, timeout_s: float = 20.0):
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s

    def _post(self, payload_input) -> dict:
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is missing but EMBED_PROVIDER=openai")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"model": self.model, "input": payload_input}

        with httpx.Client(timeout=self.timeout_s) as client:
            r = client.post(OPENAI_EMBEDDINGS_URL, json=payload, headers=headers)
            r.raise_for_status()
            return r.json()

    def embed(self, text: str) -> List[float]:
        """Single attempt. Request-path callers own the fallback."""
        data = self._post(_clean(text))
        vec = data["data"][0]["embedding"]
        if not isinstance(vec, list):
            raise RuntimeError("Unexpected embeddings response shape")
        return vec

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=0.3, min=0.3, max=3))
    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Batch embeddings for offline indexing. Response order matches input order."""
        data = self._post([_clean(t) for t in texts])

        out: List[List[float]] = []
        for row in data.get("data") or []:
            vec = row.get("embedding")
            if not isinstance(vec, list):
                raise RuntimeError("Unexpected embeddings batch response shape")
            out.append(vec)
        if len(out) != len(texts):
            raise RuntimeError("Embeddings batch size mismatch")
        return out


class CachedEmbeddingProvider:
    """Caches query embeddings by provider, model and text digest."""

    def __init__(self, inner: EmbeddingProvider, cache: Cache, namespace: str):
        self.inner = inner
        self.cache = cache
        self.namespace = namespace
        self.name = inner.name

    def _key(self, text: str) -> str:
        digest = hashlib.sha1(_clean(text).encode("utf-8")).hexdigest()
        return f"emb:{self.namespace}:{digest}"

    def embed(self, text: str) -> List[float]:
        key = self._key(text)
        hit = self.cache.get_json(key)
        if hit is not None:
            return hit
        vec = self.inner.embed(text)
        self.cache.set_json(key, vec)
        return vec

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        return self.inner.embed_batch(texts)


def build_embedding_provider(settings: Settings, cache: Cache | None = None) -> EmbeddingProvider:
    provider_name = settings.embed_provider.lower()
    if provider_name == "openai":
        provider: EmbeddingProvider = OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_embed_model,
            timeout_s=settings.request_timeout_s,
        )
        namespace = f"openai:{settings.openai_embed_model}"
    else:
        provider = MockEmbeddingProvider(dim=settings.embed_dim)
        namespace = f"mock-bow:{settings.embed_dim}"

    log.info("embedding_provider", provider=provider.name)
    if cache is None:
        return provider
    return CachedEmbeddingProvider(provider, cache, namespace)
