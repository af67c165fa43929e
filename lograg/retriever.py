"""
lograg/retriever.py
-------------------
Lexical relevance ranking for the local retrieval core.

Scores every chunk against a query with a set-based Jaccard index over
significant words and returns the top-k chunks. There is no index build
step and no embedding service: scoring is recomputed from the chunk text
on every call, so the result only depends on the arguments.

Tokenization:
    lower-case → drop everything but ASCII letters, digits, "_" and whitespace
    → split on whitespace
    → drop tokens of 2 characters or fewer → set

Repeated words count once; there is no stemming and no stop-word list
beyond the length filter.

Ranking uses a stable sort, so chunks with equal scores keep the order in
which they were supplied (documents in collection order, chunks in
sequence order). The functions here never raise.
"""

import re
from typing import AbstractSet, Iterable, List, Set

import numpy as np

from lograg.models import Chunk, ScoredChunk

# ── Constants ──────────────────────────────────────────────────────────────────
DEFAULT_TOP_K   = 3
MIN_TOKEN_CHARS = 3
_PUNCTUATION    = re.compile(r"[^A-Za-z0-9_\s]")   # ASCII word characters only
# ──────────────────────────────────────────────────────────────────────────────


def tokenize(text: str) -> Set[str]:
    """Returns the set of significant lower-cased words in text."""
    cleaned = _PUNCTUATION.sub("", text.lower())
    return {token for token in cleaned.split() if len(token) >= MIN_TOKEN_CHARS}


def jaccard_score(query_tokens: AbstractSet[str], chunk_tokens: AbstractSet[str]) -> float:
    """
    Intersection over union of two token sets, in [0, 1].

    Two empty sets score 0 rather than dividing by zero.
    """
    overlap = len(query_tokens & chunk_tokens)
    union   = len(query_tokens) + len(chunk_tokens) - overlap
    return overlap / (union or 1)


def score_chunks(query: str, chunks: Iterable[Chunk]) -> List[ScoredChunk]:
    """
    Scores every chunk against the query, preserving input order.

    Args:
        query:  Search query (typically the cleaned log).
        chunks: Chunk collection; materialised once before scoring.

    Returns:
        One ScoredChunk per input chunk.
    """
    query_tokens = tokenize(query)
    return [
        ScoredChunk(chunk, jaccard_score(query_tokens, tokenize(chunk.content)))
        for chunk in list(chunks)
    ]


def retrieve_scored(
    query: str,
    chunks: Iterable[Chunk],
    top_k: int = DEFAULT_TOP_K,
) -> List[ScoredChunk]:
    """
    Returns the top-k chunks with their scores, highest score first.

    Args:
        query:  Search query. An empty query scores every chunk 0.
        chunks: Chunk collection snapshot.
        top_k:  Maximum number of results; values <= 0 return nothing.

    Returns:
        At most min(top_k, len(chunks)) ScoredChunk entries sorted by
        non-increasing score; ties keep their input order.
    """
    snapshot = list(chunks)
    if not snapshot or top_k <= 0:
        return []

    scored = score_chunks(query, snapshot)
    scores = np.fromiter((item.score for item in scored), dtype=np.float64, count=len(scored))

    # ascending over negated scores: equal scores stay in input order
    order = np.argsort(-scores, kind="stable")[:top_k]
    return [scored[i] for i in order]


def retrieve(
    query: str,
    chunks: Iterable[Chunk],
    top_k: int = DEFAULT_TOP_K,
) -> List[Chunk]:
    """Returns the top-k chunks most relevant to the query, best first."""
    return [item.chunk for item in retrieve_scored(query, chunks, top_k)]
