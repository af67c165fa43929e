"""
lograg/models.py
----------------
Immutable value types shared by the chunker, the retriever and the
orchestration layer.

A KnowledgeDoc owns the tuple of Chunks produced when it was ingested.
A Chunk refers back to its document only through `source_id`, a copied
identifier used for citations and lookup — never for chunk lifecycle.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """A contiguous, bounded slice of a document's text."""

    model_config = ConfigDict(frozen=True)

    id:        str   # "{source_id}-chunk-{index}"
    source_id: str   # owning document id
    content:   str
    index:     int = Field(default=0, ge=0)   # sequence position within the document


class KnowledgeDoc(BaseModel):
    """A named unit of documentation text and the chunks cut from it."""

    model_config = ConfigDict(frozen=True)

    id:          str
    title:       str
    content:     str
    chunks:      Tuple[Chunk, ...] = ()
    upload_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScoredChunk(NamedTuple):
    """Transient retrieval candidate. Never persisted."""

    chunk: Chunk
    score: float
