"""
lograg/query_cleaner.py
-----------------------
First language-model call of the pipeline: turns a raw error log into a
short search query.

Raw logs carry noise — timestamps, IP addresses, request ids, stack-trace
hashes — that dilutes lexical retrieval. The model is asked to keep error
codes, exception names and failure messages only, e.g.

    "[2023-10-10 10:00:00] Error: Connection refused at 192.168.1.1 port 8080"
    → "Connection refused port 8080"
"""

from lograg._http import ollama_post
from lograg.config import Settings
from lograg.logging_config import get_logger

log = get_logger(__name__)


def _build_prompt(raw_log: str) -> str:
    return (
        "You are a DevOps expert assistant.\n"
        "Analyze the following RAW ERROR LOG and extract the core technical issue "
        "to form a concise search query.\n"
        "Remove timestamps, IP addresses, and generic noise.\n"
        "Focus on error codes, exception names, and specific failure messages.\n\n"
        f'RAW LOG:\n"""\n{raw_log.strip()}\n"""\n\n'
        "OUTPUT (just the clean query, nothing else):"
    )


def clean_log_to_query(raw_log: str, settings: Settings) -> str:
    """
    Asks the query model for a compact search query.

    If the model answers with nothing usable, the stripped raw log is
    returned so retrieval still has something to score.

    Raises:
        ValueError:      If raw_log is blank.
        ConnectionError: If the LLM host is unreachable (from _http).
        PermissionError: If the LLM host rejects the credentials (from _http).
    """
    if not raw_log or not raw_log.strip():
        raise ValueError("raw_log must not be empty.")

    response = ollama_post(
        settings.generate_url,
        {"model": settings.query_model, "prompt": _build_prompt(raw_log), "stream": False},
        timeout = settings.timeout,
        api_key = settings.api_key,
    )

    query = response.get("response", "").strip().strip('"').strip()
    if not query:
        log.warning("Query model returned an empty response — using the raw log")
        return raw_log.strip()

    log.debug("Cleaned log (%d chars) into query '%s'", len(raw_log), query)
    return query
