# core/embeddings_retriever.py
from functools import lru_cache
from typing import List, Sequence, Tuple
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from core.entities import EmbeddingIndex
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_model() -> SentenceTransformer:
    """
    Lazy-load the sentence embedding model.

    Model is kept CPU-friendly; adjust in settings if you want a larger model.
    """
    name = settings.EMBEDDING_MODEL_NAME
    with timed(logger, "embed.model.load", model=name):
        model = SentenceTransformer(name, device="cpu")
    return model


def _encode(texts: Sequence[str], batch_size: int = 64) -> np.ndarray:
    model = _load_model()
    vecs = model.encode(
        list(texts),
        batch_size=batch_size,
        convert_to_numpy=True,
        normalize_embeddings=True,
    )
    return np.asarray(vecs).astype(np.float32, copy=False)


def build_index(texts: Sequence[str], batch_size: int = 64) -> EmbeddingIndex:
    """
    Encode `texts` into an EmbeddingIndex with L2-normalized vectors.
    """
    with timed(logger, "embed.encode", n=len(texts), batch=batch_size):
        emb = _encode(texts, batch_size=batch_size)
    logger.info("embed.index n=%d d=%d", emb.shape[0], emb.shape[1] if emb.size else 0)
    return EmbeddingIndex(embeddings=emb)


def _query_vector(query: str) -> np.ndarray:
    return _encode([query])[0]


def top_k(index: EmbeddingIndex, query: str, k: int = 4) -> List[Tuple[int, float]]:
    """
    Return top-k (index, cosine_sim) for the query against the index.
    """
    with timed(logger, "embed.query", k=k):
        q = _query_vector(query)
        sims = (index.embeddings @ q).astype(float)
        kk = max(1, min(k, sims.shape[0]))
        top_idx = np.argpartition(sims, -kk)[-kk:]
        out = sorted(
            ((int(i), float(sims[int(i)])) for i in top_idx),
            key=lambda t: t[1],
            reverse=True,
        )
    logger.info("embed.topk k=%d", len(out))
    return out


def mmr(
    index: EmbeddingIndex,
    query: str,
    k: int = 4,
    fetch_k: int = 8,
    lambda_mult: float = 0.5,
) -> List[Tuple[int, float]]:
    """
    Maximal marginal relevance: take the `fetch_k` nearest chunks, then pick
    `k` of them trading query similarity against similarity to chunks
    already picked. Returns (index, cosine_sim) in pick order.
    """
    n = index.embeddings.shape[0]
    if n == 0:
        return []
    candidates = top_k(index, query, k=max(k, fetch_k))
    cand_idx = [i for i, _ in candidates]
    rel = {i: s for i, s in candidates}
    vecs = index.embeddings[cand_idx]
    pair_sims = vecs @ vecs.T

    picked: List[int] = []
    remaining = list(range(len(cand_idx)))
    while remaining and len(picked) < k:
        best_pos, best_score = remaining[0], -np.inf
        for pos in remaining:
            redundancy = max((pair_sims[pos][p] for p in picked), default=0.0)
            score = lambda_mult * rel[cand_idx[pos]] - (1 - lambda_mult) * redundancy
            if score > best_score:
                best_pos, best_score = pos, score
        picked.append(best_pos)
        remaining.remove(best_pos)

    out = [(cand_idx[p], rel[cand_idx[p]]) for p in picked]
    logger.info("embed.mmr k=%d fetch_k=%d picked=%d", k, fetch_k, len(out))
    return out
