import numpy as np

from core import embeddings_retriever
from core.embeddings_retriever import build_index, mmr, top_k

VECTORS = {
    "a": [1.0, 0.0],
    "a2": [0.995, 0.0998],
    "b": [0.0, 1.0],
    "query": [0.8, 0.6],
}


def _fake_encode(texts, batch_size=64):
    return np.asarray([VECTORS[t] for t in texts], dtype=np.float32)


def test_top_k_orders_by_similarity(monkeypatch):
    monkeypatch.setattr(embeddings_retriever, "_encode", _fake_encode)
    index = build_index(["a", "a2", "b"])

    assert [i for i, _ in top_k(index, "query", k=2)] == [1, 0]


def test_mmr_prefers_diverse_second_pick(monkeypatch):
    monkeypatch.setattr(embeddings_retriever, "_encode", _fake_encode)
    index = build_index(["a", "a2", "b"])

    picks = mmr(index, "query", k=2, fetch_k=3, lambda_mult=0.3)

    assert [i for i, _ in picks] == [1, 2]


def test_mmr_on_empty_index():
    index = embeddings_retriever.EmbeddingIndex(embeddings=np.zeros((0, 2), dtype=np.float32))
    assert mmr(index, "query") == []
