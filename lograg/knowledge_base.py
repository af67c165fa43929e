"""
lograg/knowledge_base.py
------------------------
In-memory document collection for the lifetime of the host process.

Documents are chunked exactly once, when they are added, and their chunks
are removed with them. Retrieval never reads the live collection: callers
take `chunks_snapshot()`, a flattened copy made under the collection lock,
so a document added or deleted mid-analysis cannot tear the chunk list.
"""

import threading
import time
from typing import Dict, List

from lograg.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, create_chunks_from_doc
from lograg.logging_config import get_logger
from lograg.models import Chunk, KnowledgeDoc

log = get_logger(__name__)


class KnowledgeBase:
    """Ordered, thread-safe collection of KnowledgeDocs keyed by id."""

    def __init__(self) -> None:
        self._docs: Dict[str, KnowledgeDoc] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)

    def __contains__(self, doc_id: object) -> bool:
        with self._lock:
            return doc_id in self._docs

    def _new_id(self) -> str:
        stamp = int(time.time() * 1000)
        while f"doc-{stamp}" in self._docs:
            stamp += 1
        return f"doc-{stamp}"

    def add_document(
        self,
        title: str,
        content: str,
        chunk_size: int    = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> KnowledgeDoc:
        """
        Chunks and stores a new document.

        Args:
            title:         Display name (e.g. "K8s Deployment Guide").
            content:       Full documentation text.
            chunk_size:    Target characters per chunk.
            chunk_overlap: Overlap for the character-window fallback.

        Returns:
            The stored KnowledgeDoc, chunks included.

        Raises:
            ValueError:           If title or content is blank.
            InvalidConfiguration: If the chunk settings are invalid.
        """
        if not title or not title.strip():
            raise ValueError("title must not be empty.")
        if not content or not content.strip():
            raise ValueError("content must not be empty.")

        with self._lock:
            doc_id = self._new_id()
            doc = KnowledgeDoc(
                id      = doc_id,
                title   = title.strip(),
                content = content,
                chunks  = tuple(
                    create_chunks_from_doc(doc_id, content, chunk_size, chunk_overlap)
                ),
            )
            self._docs[doc_id] = doc

        log.info("Added document %s ('%s') — %d chunks", doc.id, doc.title, len(doc.chunks))
        return doc

    def delete_document(self, doc_id: str) -> KnowledgeDoc:
        """
        Removes a document together with all of its chunks.

        Raises:
            KeyError: If no document has this id.
        """
        with self._lock:
            if doc_id not in self._docs:
                raise KeyError(doc_id)
            doc = self._docs.pop(doc_id)

        log.info("Deleted document %s — %d chunks released", doc.id, len(doc.chunks))
        return doc

    def get_document(self, doc_id: str) -> KnowledgeDoc:
        """Raises KeyError for unknown ids."""
        with self._lock:
            return self._docs[doc_id]

    def documents(self) -> List[KnowledgeDoc]:
        with self._lock:
            return list(self._docs.values())

    def chunks_snapshot(self) -> List[Chunk]:
        """All chunks, documents in insertion order, chunks in sequence order."""
        with self._lock:
            return [chunk for doc in self._docs.values() for chunk in doc.chunks]
