"""
lograg/generator.py
-------------------
Second language-model call of the pipeline: a cited diagnosis.

Retrieved chunks are injected as a context block in which every passage is
labelled with the id of the document it came from. The model is told to
ground every claim in that context and to cite it as
`[Source ID: <documentId>]`, so the answer can be traced back to the
knowledge base.

Generation is the sole responsibility of this module.
It expects pre-retrieved chunks — it does NOT perform retrieval.
"""

from typing import Sequence

from lograg._http import ollama_post
from lograg.config import Settings
from lograg.logging_config import get_logger
from lograg.models import Chunk

log = get_logger(__name__)

EMPTY_RESPONSE   = "Unable to generate solution."
NO_CONTEXT_BLOCK = "(no matching documentation was found)"


def format_context(chunks: Sequence[Chunk]) -> str:
    """One "[Source ID: ...]: text" entry per chunk, blank-line separated."""
    if not chunks:
        return NO_CONTEXT_BLOCK
    return "\n\n".join(f"[Source ID: {chunk.source_id}]: {chunk.content}" for chunk in chunks)


def _build_prompt(query: str, chunks: Sequence[Chunk]) -> str:
    return (
        # Role
        "You are a SENIOR DEVOPS ENGINEER.\n\n"
        "Task: Diagnose the issue and provide a step-by-step solution based "
        "STRICTLY on the provided context.\n\n"
        # Retrieved context
        f"CONTEXT (Technical Documentation):\n{format_context(chunks)}\n\n"
        # User input
        f"USER QUERY / ERROR:\n{query}\n\n"
        "INSTRUCTIONS:\n"
        "1. Analyze the error in relation to the context.\n"
        "2. Provide a Root Cause Analysis.\n"
        "3. Provide a numbered Solution plan.\n"
        "4. You MUST cite the Source ID for every claim you make "
        '(e.g., "Check config X [Source ID: doc-1]").\n'
        "5. If the context does not contain the answer, state that clearly and "
        "offer general DevOps best practices instead.\n"
    )


def generate_solution(query: str, chunks: Sequence[Chunk], settings: Settings) -> str:
    """
    Calls the generation model to produce a cited diagnosis.

    Args:
        query:    Cleaned search query (or the raw error).
        chunks:   Retrieved chunks, best first. May be empty.
        settings: LLM host, model and credentials.

    Returns:
        The model's answer, or EMPTY_RESPONSE if it returned nothing.

    Raises:
        ValueError:      If query is blank.
        ConnectionError: If the LLM host is unreachable (from _http).
        PermissionError: If the LLM host rejects the credentials (from _http).
    """
    if not query or not query.strip():
        raise ValueError("query must not be empty.")

    prompt = _build_prompt(query, chunks)
    log.debug("Generation prompt: %d chars, %d chunks", len(prompt), len(chunks))

    response = ollama_post(
        settings.generate_url,
        {"model": settings.gen_model, "prompt": prompt, "stream": False},
        timeout = settings.timeout,
        api_key = settings.api_key,
    )

    answer = response.get("response", "").strip()
    return answer or EMPTY_RESPONSE
