"""
lograg/ingestion.py
-------------------
Seeds the in-memory knowledge base from a directory of documentation.

Every *.txt and *.md file is read as UTF-8 and added as one document whose
title is the file name. Files are processed in sorted order, so document
order — and therefore the retrieval tie-break order — is reproducible.

No database. No file writes.
"""

from pathlib import Path
from typing import List

from lograg.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE
from lograg.knowledge_base import KnowledgeBase
from lograg.logging_config import get_logger
from lograg.models import KnowledgeDoc

log = get_logger(__name__)

DOC_PATTERNS = ("*.txt", "*.md")


def ingest_directory(
    data_dir: Path,
    knowledge_base: KnowledgeBase,
    chunk_size: int    = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[KnowledgeDoc]:
    """
    Adds every documentation file in data_dir to knowledge_base.

    Blank files are skipped with a warning.

    Args:
        data_dir:       Directory containing .txt / .md documents.
        knowledge_base: Collection receiving the documents.
        chunk_size:     Target characters per chunk.
        chunk_overlap:  Overlap for the character-window fallback.

    Returns:
        The documents that were added, in ingestion order.

    Raises:
        FileNotFoundError: If data_dir does not exist or holds no non-blank
                           documents.
    """
    data_dir = Path(data_dir)
    log.info("Ingestion started — scanning %s", data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory {data_dir} does not exist.")

    files = sorted({path for pattern in DOC_PATTERNS for path in data_dir.glob(pattern)})
    if not files:
        raise FileNotFoundError(
            f"No .txt or .md files found in {data_dir}. "
            "Add documentation to the data/ directory before running."
        )

    added: List[KnowledgeDoc] = []
    for filepath in files:
        text = filepath.read_text(encoding="utf-8")
        if not text.strip():
            log.warning("Skipping %s — file is empty", filepath.name)
            continue

        doc = knowledge_base.add_document(
            title         = filepath.name,
            content       = text,
            chunk_size    = chunk_size,
            chunk_overlap = chunk_overlap,
        )
        added.append(doc)
        log.debug("%s → %d chunks", filepath.name, len(doc.chunks))

    if not added:
        raise FileNotFoundError(
            f"Every document in {data_dir} is empty. "
            "Add documentation to the data/ directory before running."
        )

    log.info(
        "Ingestion complete — %d chunks from %d document(s)",
        sum(len(doc.chunks) for doc in added), len(added),
    )
    return added
