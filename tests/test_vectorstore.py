"""Tests for the vector index backends.

The contract tests run against every backend; FAISS is skipped when
faiss-cpu is not installed.
"""

from __future__ import annotations

import threading

import numpy as np
import pytest

from docbot.config import VectorStoreSettings
from docbot.errors import DimensionMismatch
from docbot.vectorstore.base import VectorIndex
from docbot.vectorstore.factory import (
    available_indexes,
    get_vector_index,
    vector_index_from_settings,
)
from docbot.vectorstore.memory_store import InMemoryVectorIndex
from docbot.vectorstore.similarity import select_top_k, to_unit_vector


@pytest.fixture(params=["memory", "faiss"])
def index(request) -> VectorIndex:
    if request.param == "faiss":
        pytest.importorskip("faiss")
        from docbot.vectorstore.faiss_store import FAISSVectorIndex

        return FAISSVectorIndex()
    return InMemoryVectorIndex()


def _random_vectors(n: int, dim: int = 8, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(size=(n, dim))


# ---------------------------------------------------------------------------
# Query contract
# ---------------------------------------------------------------------------


class TestQuery:
    def test_nearest_neighbours(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        index.insert("c2", "bot1", [0.0, 1.0])
        index.insert("c3", "bot1", [0.9, 0.1])

        hits = index.query("bot1", [1.0, 0.0], k=2)

        assert [h.chunk_id for h in hits] == ["c1", "c3"]
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-6)
        assert hits[1].similarity == pytest.approx(0.9 / np.sqrt(0.82), abs=1e-5)

    def test_chatbot_isolation(self, index: VectorIndex):
        index.insert("a1", "bot-a", [1.0, 0.0])
        index.insert("b1", "bot-b", [1.0, 0.0])
        index.insert("b2", "bot-b", [0.8, 0.2])

        hits = index.query("bot-a", [1.0, 0.0], k=10)
        assert [h.chunk_id for h in hits] == ["a1"]

    @pytest.mark.parametrize("k", [1, 3, 5, 20])
    def test_result_length(self, index: VectorIndex, k: int):
        for i, vec in enumerate(_random_vectors(5)):
            index.insert(f"c{i}", "bot1", vec.tolist())

        hits = index.query("bot1", _random_vectors(1, seed=7)[0].tolist(), k=k)
        assert len(hits) == min(k, 5)

    def test_descending_order(self, index: VectorIndex):
        vectors = _random_vectors(40, dim=16, seed=3)
        for i, vec in enumerate(vectors):
            index.insert(f"c{i}", "bot1", vec.tolist())

        query = _random_vectors(1, dim=16, seed=11)[0]
        hits = index.query("bot1", query.tolist(), k=10)

        sims = [h.similarity for h in hits]
        assert sims == sorted(sims, reverse=True)

        unit = vectors / np.linalg.norm(vectors, axis=1, keepdims=True)
        expected = np.argsort(-(unit @ to_unit_vector(query)))[:10]
        assert [h.chunk_id for h in hits] == [f"c{i}" for i in expected]

    def test_similarity_bounds(self, index: VectorIndex):
        for i, vec in enumerate(_random_vectors(20, seed=5)):
            index.insert(f"c{i}", "bot1", vec.tolist())
        for hit in index.query("bot1", _random_vectors(1, seed=9)[0].tolist(), k=20):
            assert -1.0 <= hit.similarity <= 1.0

    def test_ties_keep_insertion_order(self, index: VectorIndex):
        for cid in ["first", "second", "third"]:
            index.insert(cid, "bot1", [0.0, 1.0])

        hits = index.query("bot1", [0.0, 1.0], k=3)
        assert [h.chunk_id for h in hits] == ["first", "second", "third"]

    def test_ties_at_cutoff(self, index: VectorIndex):
        index.insert("best", "bot1", [1.0, 0.0])
        for i in range(6):
            index.insert(f"tie{i}", "bot1", [0.5, 0.5])

        hits = index.query("bot1", [1.0, 0.0], k=3)
        assert [h.chunk_id for h in hits] == ["best", "tie0", "tie1"]

    def test_reinsert_moves_to_end_of_tie_order(self, index: VectorIndex):
        index.insert("a", "bot1", [1.0, 1.0])
        index.insert("b", "bot1", [1.0, 1.0])
        index.insert("a", "bot1", [1.0, 1.0])

        hits = index.query("bot1", [1.0, 1.0], k=2)
        assert [h.chunk_id for h in hits] == ["b", "a"]

    def test_round_trip_similarity(self, index: VectorIndex):
        vec = [0.3, -1.2, 4.5, 0.01]
        index.insert("c1", "bot1", vec)
        hits = index.query("bot1", vec, k=1)
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-5)

    def test_unnormalised_vectors(self, index: VectorIndex):
        index.insert("c1", "bot1", [10.0, 0.0])
        hits = index.query("bot1", [0.5, 0.0], k=1)
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-6)

    def test_zero_vector_scores_zero(self, index: VectorIndex):
        index.insert("zero", "bot1", [0.0, 0.0, 0.0])
        hits = index.query("bot1", [1.0, 2.0, 3.0], k=1)
        assert hits[0].chunk_id == "zero"
        assert hits[0].similarity == pytest.approx(0.0)

    def test_empty_partition(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        assert index.query("bot2", [1.0, 0.0], k=5) == []

    def test_empty_index(self, index: VectorIndex):
        assert index.query("bot1", [1.0, 0.0], k=5) == []

    def test_k_zero(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        assert index.query("bot1", [1.0, 0.0], k=0) == []


# ---------------------------------------------------------------------------
# Dimensionality
# ---------------------------------------------------------------------------


class TestDimension:
    def test_first_insert_fixes_dimension(self, index: VectorIndex):
        assert index.dimension is None
        index.insert("c1", "bot1", [1.0, 0.0, 0.0])
        assert index.dimension == 3

    def test_malformed_first_insert_leaves_dimension_unset(self, index: VectorIndex):
        with pytest.raises(ValueError):
            index.insert("c1", "bot1", [[1.0, 0.0], [0.0, 1.0]])

        assert index.dimension is None
        assert index.count() == 0
        index.insert("c2", "bot1", [1.0, 0.0, 0.0])
        assert index.dimension == 3

    def test_insert_mismatch_leaves_index_unchanged(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0, 0.0])

        with pytest.raises(DimensionMismatch) as exc_info:
            index.insert("c2", "bot1", [1.0, 0.0])

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2
        assert index.count() == 1
        assert not index.contains("c2")

    def test_mismatch_applies_across_chatbots(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatch):
            index.insert("c2", "bot2", [1.0, 0.0])

    def test_query_mismatch(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatch):
            index.query("bot1", [1.0, 0.0], k=1)

    def test_query_mismatch_checked_before_k(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatch):
            index.query("bot1", [1.0, 0.0], k=0)

    def test_configured_dimension(self):
        index = InMemoryVectorIndex(dimension=4)
        with pytest.raises(DimensionMismatch):
            index.insert("c1", "bot1", [1.0, 0.0])
        with pytest.raises(DimensionMismatch):
            index.query("bot1", [1.0, 0.0], k=1)


# ---------------------------------------------------------------------------
# Removal
# ---------------------------------------------------------------------------


class TestRemove:
    def test_remove_by_chunk(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        index.insert("c2", "bot1", [0.0, 1.0])

        assert index.remove_by_chunk("c1") is True
        assert not index.contains("c1")
        assert [h.chunk_id for h in index.query("bot1", [1.0, 0.0], k=5)] == ["c2"]

    def test_remove_by_chunk_idempotent(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        assert index.remove_by_chunk("c1") is True
        assert index.remove_by_chunk("c1") is False
        assert index.remove_by_chunk("never-existed") is False

    def test_remove_by_document(self, index: VectorIndex):
        for i in range(3):
            index.insert(f"doc1-{i}", "bot1", [1.0, float(i)], document_id="doc1")
        for i in range(2):
            index.insert(f"doc2-{i}", "bot1", [1.0, float(i)], document_id="doc2")

        assert index.remove_by_document("doc1") == 3
        assert index.count("bot1") == 2
        hits = index.query("bot1", [1.0, 0.0], k=10)
        assert {h.chunk_id for h in hits} == {"doc2-0", "doc2-1"}
        assert index.remove_by_document("doc1") == 0

    def test_remove_by_chatbot(self, index: VectorIndex):
        index.insert("a1", "bot-a", [1.0, 0.0])
        index.insert("a2", "bot-a", [0.0, 1.0])
        index.insert("b1", "bot-b", [1.0, 0.0])

        assert index.remove_by_chatbot("bot-a") == 2
        assert index.query("bot-a", [1.0, 0.0], k=5) == []
        assert index.count() == 1
        assert index.remove_by_chatbot("bot-a") == 0

    def test_removed_then_reinserted(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        index.remove_by_chunk("c1")
        index.insert("c1", "bot1", [0.0, 1.0])
        hits = index.query("bot1", [0.0, 1.0], k=1)
        assert hits[0].chunk_id == "c1"
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-6)


# ---------------------------------------------------------------------------
# Replace / move
# ---------------------------------------------------------------------------


class TestReplace:
    def test_insert_replaces_embedding(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        index.insert("c1", "bot1", [0.0, 1.0])

        assert index.count() == 1
        hits = index.query("bot1", [0.0, 1.0], k=5)
        assert len(hits) == 1
        assert hits[0].similarity == pytest.approx(1.0, abs=1e-6)

    def test_insert_moves_chunk_between_chatbots(self, index: VectorIndex):
        index.insert("c1", "bot1", [1.0, 0.0])
        index.insert("c1", "bot2", [1.0, 0.0])

        assert index.query("bot1", [1.0, 0.0], k=5) == []
        assert [h.chunk_id for h in index.query("bot2", [1.0, 0.0], k=5)] == ["c1"]
        assert index.count() == 1


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------


class TestCount:
    def test_counts(self, index: VectorIndex):
        assert index.count() == 0
        index.insert("a1", "bot-a", [1.0, 0.0])
        index.insert("a2", "bot-a", [0.0, 1.0])
        index.insert("b1", "bot-b", [1.0, 1.0])

        assert index.count() == 3
        assert index.count("bot-a") == 2
        assert index.count("bot-b") == 1
        assert index.count("bot-c") == 0
        assert index.contains("b1")


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_save_load(self, index: VectorIndex, tmp_path):
        index.insert("c1", "bot1", [1.0, 0.0], document_id="doc1")
        index.insert("c2", "bot1", [0.0, 1.0], document_id="doc1")
        index.insert("c3", "bot2", [0.9, 0.1], document_id="doc2")
        index.save(str(tmp_path / "index"))

        restored = type(index)()
        restored.load(str(tmp_path / "index"))

        assert restored.dimension == 2
        assert restored.count() == 3
        assert [h.chunk_id for h in restored.query("bot1", [1.0, 0.0], k=2)] == ["c1", "c2"]
        assert restored.remove_by_document("doc1") == 2

    def test_load_keeps_tie_order(self, index: VectorIndex, tmp_path):
        for cid in ["x", "y"]:
            index.insert(cid, "bot1", [1.0, 1.0])
        index.save(str(tmp_path / "index"))

        restored = type(index)()
        restored.load(str(tmp_path / "index"))
        restored.insert("z", "bot1", [1.0, 1.0])

        hits = restored.query("bot1", [1.0, 1.0], k=3)
        assert [h.chunk_id for h in hits] == ["x", "y", "z"]


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    def test_concurrent_inserts_and_queries(self, index: VectorIndex):
        errors: list[Exception] = []
        vectors = _random_vectors(200, dim=8, seed=1)

        def writer(bot: str, offset: int):
            try:
                for i in range(50):
                    index.insert(f"{bot}-{i}", bot, vectors[offset + i].tolist())
            except Exception as exc:
                errors.append(exc)

        def reader(bot: str):
            try:
                for _ in range(50):
                    hits = index.query(bot, vectors[0].tolist(), k=5)
                    assert len(hits) <= 5
                    assert all(h.chunk_id.startswith(bot) for h in hits)
            except Exception as exc:
                errors.append(exc)

        # Fix the dimension first so readers never see an empty index
        index.insert("seed", "seed-bot", vectors[0].tolist())

        threads = [
            threading.Thread(target=writer, args=("bot-a", 0)),
            threading.Thread(target=writer, args=("bot-b", 50)),
            threading.Thread(target=writer, args=("bot-a-extra", 100)),
            threading.Thread(target=reader, args=("bot-a",)),
            threading.Thread(target=reader, args=("bot-b",)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert index.count("bot-a") == 50
        assert index.count("bot-b") == 50
        assert index.count() == 151


# ---------------------------------------------------------------------------
# Helpers and factory
# ---------------------------------------------------------------------------


class TestSelectTopK:
    def test_picks_best(self):
        scores = np.array([0.1, 0.9, 0.5, 0.7])
        assert select_top_k(scores, [0, 1, 2, 3], 2) == [(1, 0.9), (3, 0.7)]

    def test_lower_seq_wins_tie(self):
        scores = np.array([0.5, 0.5, 0.5])
        best = select_top_k(scores, [7, 3, 5], 2)
        assert [pos for pos, _ in best] == [1, 2]

    def test_k_larger_than_candidates(self):
        scores = np.array([0.2, 0.4])
        assert [pos for pos, _ in select_top_k(scores, [0, 1], 10)] == [1, 0]

    def test_k_zero(self):
        assert select_top_k(np.array([1.0]), [0], 0) == []


class TestUnitVector:
    def test_normalises(self):
        assert np.linalg.norm(to_unit_vector([3.0, 4.0])) == pytest.approx(1.0)

    def test_zero_stays_zero(self):
        assert to_unit_vector([0.0, 0.0]).tolist() == [0.0, 0.0]

    def test_rejects_matrix(self):
        with pytest.raises(ValueError):
            to_unit_vector([[1.0, 0.0]])


class TestIndexFactory:
    def test_available(self):
        assert available_indexes() == ["memory", "faiss"]

    def test_get_memory(self):
        index = get_vector_index("memory", dimension=4)
        assert isinstance(index, InMemoryVectorIndex)
        assert index.dimension == 4

    def test_fresh_instance_per_call(self):
        assert get_vector_index("memory") is not get_vector_index("memory")

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown vector index"):
            get_vector_index("pinecone")

    def test_from_settings_restores_saved_index(self, tmp_path):
        settings = VectorStoreSettings(backend="memory", path=str(tmp_path / "index"))

        index = vector_index_from_settings(settings, dimension=2)
        assert index.count() == 0
        index.insert("c1", "bot1", [1.0, 0.0])
        index.save(settings.path)

        restored = vector_index_from_settings(settings, dimension=2)
        assert restored.contains("c1")
        assert restored.dimension == 2

    def test_from_settings_ignores_empty_directory(self, tmp_path):
        (tmp_path / "index").mkdir()
        settings = VectorStoreSettings(backend="memory", path=str(tmp_path / "index"))

        index = vector_index_from_settings(settings, dimension=2)

        assert index.count() == 0
        assert not index.has_saved_index(settings.path)
