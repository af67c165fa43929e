"""
app.py
------
Orchestration layer for the log triage assistant.

Coordinates two strictly separated phases:

  INGESTION  — run when documentation is added
    data/*.txt|*.md → KnowledgeBase.add_document() → create_chunks_from_doc()

  ANALYSIS   — run once per pasted log
    raw log → clean_log_to_query() → retrieve_scored() → generate_solution()
            → validate() → DiagnosisResponse

Analysis is reported as four steps (Ingest Log, Refine Query, Retrieve
Context, Generate). Each status change is pushed to an optional callback so
the CLI, the API and the Streamlit UI can display progress. A failing step
is marked "error" and the original exception propagates unchanged.

Retrieval runs locally over an in-memory snapshot of the chunks; only the
query-cleaning and generation steps call the language model.
"""

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from lograg.config         import Settings
from lograg.generator      import generate_solution
from lograg.ingestion      import ingest_directory
from lograg.knowledge_base import KnowledgeBase
from lograg.logging_config import get_logger
from lograg.models         import Chunk
from lograg.query_cleaner  import clean_log_to_query
from lograg.retriever      import retrieve_scored
from validator.json_validator import DiagnosisResponse, ValidationError, validate

log = get_logger("app")

# ── Configuration ───────────────────────────────────────────────────────────────

SETTINGS = Settings.from_env()

PIPELINE_STEPS = (
    ("1", "Ingest Log"),
    ("2", "Refine Query"),
    ("3", "Retrieve Context"),
    ("4", "Generate"),
)


@dataclass
class AnalysisStep:
    """Progress of one pipeline step, as shown to the user."""
    id:     str
    label:  str
    status: str           = "pending"   # pending | loading | complete | error
    detail: Optional[str] = None


StepCallback = Callable[[AnalysisStep], None]


def new_steps() -> List[AnalysisStep]:
    return [AnalysisStep(id=step_id, label=label) for step_id, label in PIPELINE_STEPS]


# ── Analysis pipeline ───────────────────────────────────────────────────────────

def analyze_log(
    raw_log: str,
    chunks: Iterable[Chunk],
    settings: Settings = SETTINGS,
    on_step: Optional[StepCallback] = None,
) -> DiagnosisResponse:
    """
    Cleans the log into a query, retrieves top-k chunks, generates a cited
    diagnosis and validates the structured response.

    Args:
        raw_log:  Error log as pasted by the user.
        chunks:   Chunk collection to search; copied before retrieval.
        settings: LLM host, models and retrieval depth.
        on_step:  Called with the AnalysisStep on every status change.

    Returns:
        A validated DiagnosisResponse.

    Raises:
        ValueError:      If raw_log is blank.
        ConnectionError: If the LLM host is unreachable.
        PermissionError: If the LLM host rejects the credentials.
        ValidationError: If the pipeline output fails schema validation.
    """
    if not raw_log or not raw_log.strip():
        raise ValueError("raw_log must not be empty.")

    steps    = new_steps()
    snapshot = list(chunks)
    active: Optional[AnalysisStep] = None

    def advance(step: AnalysisStep, status: str, detail: Optional[str] = None) -> None:
        nonlocal active
        step.status = status
        step.detail = detail
        active = step if status == "loading" else None
        if on_step is not None:
            on_step(step)

    ingest, refine, search, generate = steps
    try:
        # 1. Accept the raw log
        advance(ingest, "loading")
        advance(ingest, "complete", f"{len(raw_log.splitlines())} line(s)")

        # 2. Clean log into a search query (LLM call 1)
        advance(refine, "loading")
        search_query = clean_log_to_query(raw_log, settings)
        advance(refine, "complete", search_query)

        # 3. Local lexical retrieval
        advance(search, "loading")
        results = retrieve_scored(search_query, snapshot, settings.top_k)
        advance(search, "complete", f"{len(results)} of {len(snapshot)} chunks")
        log.debug("Retrieval scores: %s", [(r.chunk.id, round(r.score, 4)) for r in results])

        # 4. Cited diagnosis (LLM call 2)
        advance(generate, "loading")
        solution = generate_solution(search_query, [r.chunk for r in results], settings)
        advance(generate, "complete")

    except Exception as exc:
        if active is not None:
            log.error("Step '%s' failed: %s", active.label, exc)
            advance(active, "error", str(exc))
        raise

    raw_response = {
        "original_log": raw_log,
        "search_query": search_query,
        "sources": [
            {
                "chunk_id":  r.chunk.id,
                "source_id": r.chunk.source_id,
                "text":      r.chunk.content,
                "score":     round(r.score, 4),
            }
            for r in results
        ],
        "solution":  solution,
        "model":     settings.gen_model,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return validate(raw_response)


# ── Entry point ─────────────────────────────────────────────────────────────────

def _read_log(argv: List[str]) -> str:
    if not argv:
        return sys.stdin.read()
    candidate = Path(argv[0])
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")
    return " ".join(argv)


def _print_step(step: AnalysisStep) -> None:
    if step.status != "loading":
        suffix = f" — {step.detail}" if step.detail else ""
        print(f"  [{step.status:>8}] {step.label}{suffix}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    raw_log = _read_log(argv)
    if not raw_log.strip():
        print("[ERROR] No log supplied. Pass a log file, log text, or pipe it on stdin.",
              file=sys.stderr)
        return 1

    knowledge_base = KnowledgeBase()
    try:
        ingest_directory(
            SETTINGS.data_dir,
            knowledge_base,
            chunk_size    = SETTINGS.chunk_size,
            chunk_overlap = SETTINGS.chunk_overlap,
        )
    except FileNotFoundError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    try:
        response = analyze_log(
            raw_log,
            knowledge_base.chunks_snapshot(),
            settings = SETTINGS,
            on_step  = _print_step,
        )
    except (ConnectionError, PermissionError, RuntimeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"[VALIDATION ERROR] {exc}", file=sys.stderr)
        return 2

    print(json.dumps(response, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
