"""
lograg/chunker.py
-----------------
Boundary-aware document segmentation for the local retrieval core.

Splits free-text documentation (runbooks, READMEs, incident notes) into
bounded chunks while keeping paragraphs, lines and words together whenever
possible. Separators are tried in priority order:

    "\\n\\n"  →  "\\n"  →  " "  →  ""  (character windows)

and a level is only abandoned for the next, more aggressive one when a
piece produced at that level is still longer than `chunk_size`.

`chunk_overlap` is only realised by the final character-window level.
Chunks cut on paragraph, line or word boundaries do not repeat trailing
context from their predecessor.

No external calls — operates entirely on local text.
"""

from typing import List

from lograg.models import Chunk

# ── Constants ──────────────────────────────────────────────────────────────────
SEPARATORS            = ("\n\n", "\n", " ", "")
DEFAULT_CHUNK_SIZE    = 500
DEFAULT_CHUNK_OVERLAP = 50
# ──────────────────────────────────────────────────────────────────────────────


class InvalidConfiguration(ValueError):
    """Raised when chunk_size / chunk_overlap cannot produce a terminating split."""


def validate_chunk_config(chunk_size: int, chunk_overlap: int) -> None:
    """
    Rejects sizes that would make the character-window step non-positive.

    Raises:
        InvalidConfiguration: If chunk_size <= 0 or overlap is outside
                              [0, chunk_size).
    """
    for name, value in (("chunk_size", chunk_size), ("chunk_overlap", chunk_overlap)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidConfiguration(
                f"{name} must be an integer, got {type(value).__name__}."
            )
    if chunk_size <= 0:
        raise InvalidConfiguration("chunk_size must be a positive integer.")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise InvalidConfiguration("chunk_overlap must be >= 0 and < chunk_size.")


# ── Internal helpers ───────────────────────────────────────────────────────────

def _hard_split(text: str, chunk_size: int, chunk_overlap: int) -> List[str]:
    """Fixed-width windows advancing by chunk_size - chunk_overlap."""
    step = chunk_size - chunk_overlap
    return [text[i : i + chunk_size] for i in range(0, len(text), step)]


def _merge(tokens: List[str], separator: str, chunk_size: int) -> List[str]:
    """
    Greedily re-joins tokens with `separator` while the result stays
    strictly shorter than chunk_size. Empty accumulators are never emitted.
    """
    merged: List[str] = []
    current = ""

    for token in tokens:
        candidate = current + separator + token if current else token
        if len(candidate) < chunk_size:
            current = candidate
        else:
            if current:
                merged.append(current)
            current = token

    if current:
        merged.append(current)
    return merged


def _split(text: str, level: int, chunk_size: int, chunk_overlap: int) -> List[str]:
    if len(text) <= chunk_size:
        return [text]

    separator = SEPARATORS[level] if level < len(SEPARATORS) else ""
    if not separator:
        return _hard_split(text, chunk_size, chunk_overlap)

    pieces: List[str] = []
    for piece in _merge(text.split(separator), separator, chunk_size):
        if len(piece) > chunk_size:
            pieces.extend(_split(piece, level + 1, chunk_size, chunk_overlap))
        else:
            pieces.append(piece)
    return pieces


# ── Public API ─────────────────────────────────────────────────────────────────

def recursive_character_split(
    text: str,
    chunk_size: int    = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Splits text into ordered chunks of at most chunk_size characters.

    Args:
        text:          Raw document text.
        chunk_size:    Maximum characters per chunk.
        chunk_overlap: Characters shared by consecutive character windows.

    Returns:
        List of non-empty chunk strings in document order. Empty input
        yields an empty list. Pieces are not stripped.

    Raises:
        InvalidConfiguration: If chunk_size or chunk_overlap are invalid.
    """
    validate_chunk_config(chunk_size, chunk_overlap)
    if not text:
        return []
    return _split(text, 0, chunk_size, chunk_overlap)


def create_chunks_from_doc(
    document_id: str,
    content: str,
    chunk_size: int    = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[Chunk]:
    """
    Cuts a document into Chunk records ready for retrieval.

    Each piece is stripped; pieces that are empty after stripping are
    dropped before numbering, so indices are contiguous from 0 and ids are
    "{document_id}-chunk-{index}". The same input always produces the same
    ids in the same order.

    Raises:
        InvalidConfiguration: If chunk_size or chunk_overlap are invalid.
    """
    pieces = (
        piece.strip()
        for piece in recursive_character_split(content, chunk_size, chunk_overlap)
    )
    kept = [piece for piece in pieces if piece]

    return [
        Chunk(
            id        = f"{document_id}-chunk-{idx}",
            source_id = document_id,
            content   = piece,
            index     = idx,
        )
        for idx, piece in enumerate(kept)
    ]
