"""임베딩 벡터 유틸리티 모듈.

Embedding vector utilities. CLIP embeddings are stored as raw float32
bytes; similarity is the cosine of L2-normalised vectors and distance is
``1 - cosine``, matching pgvector's ``<=>`` operator.
"""

from typing import Sequence

import numpy as np

# 0으로 나누기 방지용 — Guards normalisation of zero vectors
_EPSILON: float = 1e-9


def embedding_to_bytes(embedding: Sequence[float] | np.ndarray) -> bytes:
    """임베딩을 float32 bytes로 직렬화합니다 — Serialise an embedding to float32 bytes."""
    return np.asarray(embedding, dtype="float32").tobytes()


def bytes_to_embedding(blob: bytes) -> np.ndarray:
    """float32 bytes를 벡터로 역직렬화합니다 — Deserialise float32 bytes to a vector."""
    return np.frombuffer(blob, dtype="float32")


def cosine_distances(query: np.ndarray, candidates: np.ndarray) -> np.ndarray:
    """질의 벡터와 후보 행렬 사이의 코사인 거리를 계산합니다.

    Compute cosine distances between one query vector and each row of
    ``candidates``.

    Args:
        query: 질의 벡터, shape (d,) (Query vector)
        candidates: 후보 행렬, shape (n, d) (Candidate matrix)

    Returns:
        np.ndarray: 거리 배열, shape (n,), 0(동일)~2(반대) (Distances, 0 = identical)
    """
    if candidates.size == 0:
        return np.zeros(0, dtype="float32")
    q = query / (np.linalg.norm(query) + _EPSILON)
    norms = np.linalg.norm(candidates, axis=1, keepdims=True) + _EPSILON
    return 1.0 - (candidates / norms) @ q
