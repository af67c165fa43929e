"""
validator/json_validator.py
---------------------------
Output schema enforcement for the log triage pipeline.

Defines the canonical DiagnosisResponse TypedDict and validates pipeline
output against it before it is returned to the CLI, the API or the UI.
Raises a typed ValidationError on any schema violation — no silent failures.

Citations of the form `[Source ID: <documentId>]` in the solution text are
extracted and compared with the retrieved sources. A citation that points
outside the retrieved set is logged, not rejected: the generated text is
free-form and its content is not validated.
"""

import json
import re
from numbers import Real
from typing import Any, Dict, List

from typing_extensions import TypedDict

from lograg.logging_config import get_logger

log = get_logger(__name__)

_CITATION = re.compile(r"\[Source ID:\s*([^\]]+?)\s*\]")


# ── Schema definition ──────────────────────────────────────────────────────────

class SourceEntry(TypedDict):
    """A single retrieved chunk with source attribution."""
    chunk_id:  str     # "{documentId}-chunk-{index}"
    source_id: str     # owning document id, as cited in the solution
    text:      str     # chunk text handed to the generator
    score:     float   # Jaccard relevance in [0, 1]


class DiagnosisResponse(TypedDict):
    """Canonical output contract for one analysed log."""
    original_log: str                 # raw log as pasted by the user
    search_query: str                 # cleaned query used for retrieval
    sources:      List[SourceEntry]   # retrieved chunks, best first (may be empty)
    solution:     str                 # LLM-generated, cited diagnosis
    model:        str                 # generation model used
    timestamp:    str                 # ISO-8601, UTC


_REQUIRED_KEYS = tuple(DiagnosisResponse.__annotations__)


# ── Custom exception ───────────────────────────────────────────────────────────

class ValidationError(ValueError):
    """Raised when a DiagnosisResponse fails schema validation."""


# ── Citations ──────────────────────────────────────────────────────────────────

def cited_source_ids(solution: str) -> List[str]:
    """Source ids cited in the solution, in order of first appearance."""
    seen: List[str] = []
    for match in _CITATION.finditer(solution):
        source_id = match.group(1)
        if source_id not in seen:
            seen.append(source_id)
    return seen


# ── Validators ─────────────────────────────────────────────────────────────────

def validate_json_string(raw: str) -> Dict[str, Any]:
    """
    Parses a JSON string and returns the decoded dict.

    Raises:
        ValidationError: If the string is not valid JSON.
    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc}") from exc


def _validate_source(i: int, entry: Any) -> None:
    if not isinstance(entry, dict):
        log.error("Validation failed — sources[%d] is not a dict", i)
        raise ValidationError(
            f"DiagnosisResponse sources[{i}] must be a dict, got {type(entry).__name__}."
        )
    for field in ("chunk_id", "source_id", "text"):
        if not isinstance(entry.get(field), str) or not entry[field].strip():
            log.error("Validation failed — sources[%d]['%s'] missing or empty", i, field)
            raise ValidationError(
                f"DiagnosisResponse sources[{i}]['{field}'] must be a non-empty string."
            )
    score = entry.get("score")
    if isinstance(score, bool) or not isinstance(score, Real) or not 0.0 <= score <= 1.0:
        log.error("Validation failed — sources[%d]['score'] out of range: %r", i, score)
        raise ValidationError(
            f"DiagnosisResponse sources[{i}]['score'] must be a number in [0, 1]."
        )


def validate(response: Dict[str, Any]) -> DiagnosisResponse:
    """
    Validates a dict against the DiagnosisResponse schema.

    Checks:
      - Required keys are present
      - original_log, search_query, solution, model, timestamp are non-empty strings
      - sources is a list (possibly empty) of well-formed SourceEntry dicts

    Args:
        response: Dict to validate (typically the raw pipeline output).

    Returns:
        The same data cast as a typed DiagnosisResponse.

    Raises:
        ValidationError: If any field is missing, wrong type, or blank.
    """
    missing = [key for key in _REQUIRED_KEYS if key not in response]
    if missing:
        log.error("Validation failed — missing keys: %s", missing)
        raise ValidationError(f"DiagnosisResponse missing required keys: {missing}")

    for key in ("original_log", "search_query", "solution", "model", "timestamp"):
        if not isinstance(response[key], str) or not response[key].strip():
            log.error("Validation failed — field '%s' is empty or wrong type", key)
            raise ValidationError(
                f"DiagnosisResponse field '{key}' must be a non-empty string."
            )

    if not isinstance(response["sources"], list):
        log.error("Validation failed — 'sources' is not a list")
        raise ValidationError("DiagnosisResponse 'sources' must be a list.")

    for i, entry in enumerate(response["sources"]):
        _validate_source(i, entry)

    retrieved = {entry["source_id"] for entry in response["sources"]}
    unknown   = [sid for sid in cited_source_ids(response["solution"]) if sid not in retrieved]
    if unknown:
        log.warning("Solution cites sources that were not retrieved: %s", unknown)

    log.info(
        "Validation succeeded — query='%.60s' sources=%d",
        response["search_query"], len(response["sources"]),
    )
    return DiagnosisResponse(**{key: response[key] for key in _REQUIRED_KEYS})  # type: ignore[misc]
