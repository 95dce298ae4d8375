from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import numpy as np
import structlog

log = structlog.get_logger(__name__)


@dataclass
class VectorHit:
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorIndex(Protocol):
    def upsert(self, id: str, vector: List[float], metadata: Optional[Dict[str, Any]] = None) -> None: ...

    def query(self, vector: List[float], top_k: int) -> List[VectorHit]: ...


def tutor_vector_id(tutor_id: int) -> str:
    return f"tutor-{tutor_id}"


class InMemoryVectorIndex:
    """Brute-force cosine similarity over an in-process matrix."""

    def __init__(self) -> None:
        self._ids: List[str] = []
        self._meta: List[Dict[str, Any]] = []
        self._vecs: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self._ids)

    def upsert(self, id: str, vector: List[float], metadata: Optional[Dict[str, Any]] = None) -> None:
        v = np.asarray(vector, dtype=np.float32)
        v = v / (np.linalg.norm(v) + 1e-12)
        if id in self._ids:
            i = self._ids.index(id)
            self._vecs[i] = v
            self._meta[i] = dict(metadata or {})
            return
        self._ids.append(id)
        self._vecs.append(v)
        self._meta.append(dict(metadata or {}))

    def query(self, vector: List[float], top_k: int) -> List[VectorHit]:
        if not self._ids or top_k <= 0:
            return []
        q = np.asarray(vector, dtype=np.float32)
        q = q / (np.linalg.norm(q) + 1e-12)
        matrix = np.vstack(self._vecs)
        if matrix.shape[1] != q.shape[0]:
            raise ValueError(f"Query dimension {q.shape[0]} does not match index dimension {matrix.shape[1]}")

        sims = matrix @ q
        order = np.argsort(-sims, kind="stable")[:top_k]
        return [
            VectorHit(id=self._ids[i], score=float(sims[i]), metadata=dict(self._meta[i]))
            for i in order
        ]

    def save(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        np.save(p.with_suffix(".npy"), np.vstack(self._vecs) if self._vecs else np.zeros((0, 0), dtype=np.float32))
        p.with_suffix(".json").write_text(json.dumps({"ids": self._ids, "metadata": self._meta}))
        log.info("vector_index_saved", path=str(p), size=len(self))

    @classmethod
    def load(cls, path: str | Path) -> "InMemoryVectorIndex":
        p = Path(path)
        matrix = np.load(p.with_suffix(".npy"))
        header = json.loads(p.with_suffix(".json").read_text())
        index = cls()
        for i, vid in enumerate(header["ids"]):
            index.upsert(vid, matrix[i].tolist(), header["metadata"][i])
        log.info("vector_index_loaded", path=str(p), size=len(index))
        return index
