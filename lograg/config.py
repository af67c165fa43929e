"""
lograg/config.py
----------------
Explicit runtime configuration for the log triage assistant.

Settings are resolved once, from LOGRAG_* environment variables, into a
frozen dataclass that callers pass down to the LLM collaborators. Nothing
below the orchestration layer reads the environment itself; the chunker
and retriever only ever see plain arguments.

Environment variables:
    LOGRAG_LLM_URL        Base URL of the Ollama-compatible host
    LOGRAG_API_KEY        Optional bearer token for a hosted endpoint
    LOGRAG_GEN_MODEL      Model used for the cited diagnosis
    LOGRAG_QUERY_MODEL    Model used to clean raw logs into queries
    LOGRAG_TIMEOUT        Request timeout in seconds
    LOGRAG_CHUNK_SIZE     Target characters per chunk
    LOGRAG_CHUNK_OVERLAP  Character overlap for the hard-split fallback
    LOGRAG_TOP_K          Chunks handed to the generation step
    LOGRAG_DATA_DIR       Directory of seed documents (*.txt, *.md)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from lograg.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, validate_chunk_config
from lograg.retriever import DEFAULT_TOP_K

# ── Defaults ───────────────────────────────────────────────────────────────────
DEFAULT_LLM_URL     = "http://localhost:11434"
DEFAULT_GEN_MODEL   = "mistral"
DEFAULT_QUERY_MODEL = "mistral"
DEFAULT_TIMEOUT     = 60
DEFAULT_DATA_DIR    = Path(__file__).resolve().parent.parent / "data"
# ──────────────────────────────────────────────────────────────────────────────


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}.") from exc


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        llm_url: Base URL of the Ollama-compatible generation host.
        api_key: Optional bearer token sent with every LLM request.
        gen_model: Model that writes the cited diagnosis.
        query_model: Model that rewrites raw logs into search queries.
        timeout: Socket timeout for LLM requests, in seconds.
        chunk_size: Target characters per chunk at ingestion.
        chunk_overlap: Overlap used by the character-window fallback.
        top_k: Number of chunks retrieved per analysis.
        data_dir: Directory scanned for seed documents.
    """

    llm_url:       str           = DEFAULT_LLM_URL
    api_key:       Optional[str] = None
    gen_model:     str           = DEFAULT_GEN_MODEL
    query_model:   str           = DEFAULT_QUERY_MODEL
    timeout:       int           = DEFAULT_TIMEOUT
    chunk_size:    int           = DEFAULT_CHUNK_SIZE
    chunk_overlap: int           = DEFAULT_CHUNK_OVERLAP
    top_k:         int           = DEFAULT_TOP_K
    data_dir:      Path          = DEFAULT_DATA_DIR

    def __post_init__(self) -> None:
        validate_chunk_config(self.chunk_size, self.chunk_overlap)
        if self.timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds.")
        if self.top_k < 0:
            raise ValueError("top_k must be >= 0.")

    @property
    def generate_url(self) -> str:
        return f"{self.llm_url.rstrip('/')}/api/generate"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds Settings from LOGRAG_* variables, falling back to defaults.

        Args:
            env: Mapping to read from (default: os.environ).

        Raises:
            ValueError: If a numeric variable is not an integer, or the
                        resulting chunk configuration is invalid.
        """
        env = os.environ if env is None else env
        return cls(
            llm_url       = env.get("LOGRAG_LLM_URL", DEFAULT_LLM_URL),
            api_key       = env.get("LOGRAG_API_KEY") or None,
            gen_model     = env.get("LOGRAG_GEN_MODEL", DEFAULT_GEN_MODEL),
            query_model   = env.get("LOGRAG_QUERY_MODEL", DEFAULT_QUERY_MODEL),
            timeout       = _int_env(env, "LOGRAG_TIMEOUT", DEFAULT_TIMEOUT),
            chunk_size    = _int_env(env, "LOGRAG_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            chunk_overlap = _int_env(env, "LOGRAG_CHUNK_OVERLAP", DEFAULT_CHUNK_OVERLAP),
            top_k         = _int_env(env, "LOGRAG_TOP_K", DEFAULT_TOP_K),
            data_dir      = Path(env.get("LOGRAG_DATA_DIR", str(DEFAULT_DATA_DIR))),
        )
