# tests/test_document_library.py

import threading

import numpy as np
import pytest
from unittest.mock import MagicMock
from src.application.document_library import DocumentLibrary
from src.application.embedding_index import EmbeddingIndex


# Each topic word maps to its own axis so similarity is predictable
TOPIC_AXES = {"cats": 0, "dogs": 1, "rockets": 2}


def _topic_vector(text: str, pooling: str = "mean", normalize: bool = True) -> np.ndarray:
    vector = np.zeros(len(TOPIC_AXES) + 1, dtype=np.float32)
    for word in text.lower().split():
        if word in TOPIC_AXES:
            vector[TOPIC_AXES[word]] += 1.0
    if not vector.any():
        vector[-1] = 1.0
    return vector / np.linalg.norm(vector)


def _make_library() -> DocumentLibrary:
    backend = MagicMock()
    backend.load.return_value = MagicMock(side_effect=_topic_vector)
    return DocumentLibrary(EmbeddingIndex(backend))


def test_add_document_embeds_and_counts_words():
    library = _make_library()

    document = library.add_document("pets.txt", "cats are  great\npets")

    assert document.metadata.word_count == 4
    assert document.metadata.source == "pets.txt"
    assert document.metadata.uploaded_at.tzinfo is not None
    assert document.embedding is not None
    assert len(library) == 1


def test_add_documents_assigns_unique_ids():
    library = _make_library()

    documents = library.add_documents([("a.txt", "cats"), ("b.txt", "dogs"), ("c.txt", "cats")])

    assert len({d.id for d in documents}) == 3
    assert [d.title for d in library.documents] == ["a.txt", "b.txt", "c.txt"]


def test_search_ranks_matching_documents():
    library = _make_library()
    library.add_documents([
        ("cats.txt", "all about cats"),
        ("dogs.txt", "all about dogs"),
        ("mixed.txt", "cats and dogs"),
    ])

    results = library.search("cats", threshold=0.5, limit=5)

    assert [r.document.title for r in results] == ["cats.txt", "mixed.txt"]
    assert results[0].similarity == pytest.approx(1.0, abs=1e-6)


def test_search_respects_limit():
    library = _make_library()
    library.add_documents([(f"cats{i}.txt", "cats") for i in range(10)])

    results = library.search("cats", threshold=0.0, limit=3)

    assert len(results) == 3


def test_search_rejects_empty_query():
    library = _make_library()
    with pytest.raises(ValueError, match="empty"):
        library.search("   ")


def test_delete_document():
    library = _make_library()
    keep = library.add_document("keep.txt", "cats")
    drop = library.add_document("drop.txt", "dogs")

    removed = library.delete_document(drop.id)

    assert removed.id == drop.id
    assert [d.id for d in library.documents] == [keep.id]


def test_delete_unknown_document_raises():
    library = _make_library()
    with pytest.raises(KeyError):
        library.delete_document("missing")


def test_regenerate_embeddings_replaces_vectors_in_place():
    library = _make_library()
    document = library.add_document("cats.txt", "cats")
    document.embedding = np.zeros_like(document.embedding)

    updated = library.regenerate_embeddings()

    assert updated == 1
    assert library.get_document(document.id) is document
    assert np.linalg.norm(document.embedding) == pytest.approx(1.0)


def test_total_word_count():
    library = _make_library()
    library.add_documents([("a.txt", "one two three"), ("b.txt", "four five")])

    assert library.total_word_count() == 5


def test_documents_snapshot_is_immutable():
    library = _make_library()
    library.add_document("a.txt", "cats")

    snapshot = library.documents
    library.add_document("b.txt", "dogs")

    assert len(snapshot) == 1
    assert len(library.documents) == 2


def test_delete_during_concurrent_adds_keeps_every_new_document():
    library = _make_library()
    doomed = library.add_documents([(f"old{i}.txt", "dogs") for i in range(20)])
    start = threading.Barrier(2)

    def add_many():
        start.wait()
        for i in range(50):
            library.add_document(f"new{i}.txt", "cats")

    def delete_all():
        start.wait()
        for document in doomed:
            library.delete_document(document.id)

    threads = [threading.Thread(target=add_many), threading.Thread(target=delete_all)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    titles = [d.title for d in library.documents]
    assert len(library) == 50
    assert titles == [f"new{i}.txt" for i in range(50)]


def test_delete_while_add_is_embedding():
    embedding_started = threading.Event()
    release = threading.Event()

    def blocking_vector(text, pooling="mean", normalize=True):
        if "rockets" in text:
            embedding_started.set()
            release.wait(timeout=5)
        return _topic_vector(text)

    backend = MagicMock()
    backend.load.return_value = MagicMock(side_effect=blocking_vector)
    library = DocumentLibrary(EmbeddingIndex(backend))
    old = library.add_document("old.txt", "dogs")

    adder = threading.Thread(target=library.add_document, args=("new.txt", "rockets"))
    adder.start()
    assert embedding_started.wait(timeout=5)

    library.delete_document(old.id)
    release.set()
    adder.join()

    assert [d.title for d in library.documents] == ["new.txt"]
