# src/application/document_library.py

import threading
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from src.application.embedding_index import EmbeddingIndex
from src.domain.models import Document, DocumentMetadata, SimilarityResult
from src.infrastructure.similarity import DEFAULT_LIMIT, DEFAULT_THRESHOLD
from src.infrastructure.text_processing import count_words


class DocumentLibrary:
    """
    The caller-owned, in-memory document collection.

    Documents are embedded on upload, can be re-embedded in place
    (e.g. after a model change), and are searched by cosine similarity
    against the query embedding. Nothing is persisted.
    """

    def __init__(self, index: EmbeddingIndex):
        self._index = index
        self._documents: List[Document] = []
        # Guards the list; embeddings are computed outside it
        self._lock = threading.Lock()

    @property
    def index(self) -> EmbeddingIndex:
        return self._index

    @property
    def documents(self) -> Tuple[Document, ...]:
        with self._lock:
            return tuple(self._documents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def add_document(self, title: str, content: str, source: Optional[str] = None) -> Document:
        document = Document(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            metadata=DocumentMetadata(
                source=source or title,
                uploaded_at=datetime.now(timezone.utc),
                word_count=count_words(content),
            ),
            embedding=self._index.generate_embedding(content),
        )
        with self._lock:
            self._documents.append(document)
        print(
            f"[DocumentLibrary] Added '{title}' "
            f"({document.metadata.word_count} words, {len(document.embedding)} dimensions)"
        )
        return document

    def add_documents(self, items: Iterable[Tuple[str, str]]) -> List[Document]:
        """Add (title, content) pairs one after another."""
        return [self.add_document(title, content) for title, content in items]

    def get_document(self, document_id: str) -> Document:
        with self._lock:
            for document in self._documents:
                if document.id == document_id:
                    return document
        raise KeyError(f"Unknown document id: {document_id}")

    def delete_document(self, document_id: str) -> Document:
        with self._lock:
            document = next((d for d in self._documents if d.id == document_id), None)
            if document is None:
                raise KeyError(f"Unknown document id: {document_id}")
            self._documents.remove(document)
        print(f"[DocumentLibrary] Removed '{document.title}' and its embedding.")
        return document

    def regenerate_embeddings(self) -> int:
        documents = self.documents
        for document in documents:
            document.embedding = self._index.generate_embedding(document.content)
        print(f"[DocumentLibrary] Updated embeddings for {len(documents)} document(s).")
        return len(documents)

    def total_word_count(self) -> int:
        return sum(d.metadata.word_count for d in self.documents)

    def search(
        self,
        query: str,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> List[SimilarityResult]:
        query = query.strip()
        if not query:
            raise ValueError("Query cannot be empty.")

        query_embedding = self._index.generate_embedding(query)
        return self._index.find_similar_documents(
            query_embedding,
            self.documents,
            threshold=threshold,
            limit=limit,
        )
