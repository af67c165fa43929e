"""
service/api.py
--------------
FastAPI service layer for the log triage assistant.

Endpoints:
    GET    /health                 liveness + knowledge-base counts
    GET    /documents              document summaries
    POST   /documents              { "title", "content" }  →  summary (201)
    GET    /documents/{doc_id}     full document with its chunks
    DELETE /documents/{doc_id}     remove a document and its chunks
    POST   /search                 { "query", "top_k"? }   →  scored chunks (no LLM)
    POST   /analyze                { "log" }               →  DiagnosisResponse

The knowledge base is seeded once at start-up from the configured data
directory via the lifespan context manager and held in memory for the
lifetime of the process. A missing or empty data directory is not fatal:
the service starts with an empty knowledge base.

Run with:
    uvicorn service.api:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from app import SETTINGS, analyze_log
from lograg.ingestion      import ingest_directory
from lograg.knowledge_base import KnowledgeBase
from lograg.logging_config import get_logger
from lograg.models         import KnowledgeDoc
from lograg.retriever      import retrieve_scored
from validator.json_validator import ValidationError

log = get_logger(__name__)


# ── Request / Response models ──────────────────────────────────────────────────

class DocumentCreate(BaseModel):
    """Input schema for POST /documents."""
    title:   str
    content: str


class DocumentSummary(BaseModel):
    id:          str
    title:       str
    chunk_count: int
    upload_date: datetime

    @classmethod
    def from_doc(cls, doc: KnowledgeDoc) -> "DocumentSummary":
        return cls(id=doc.id, title=doc.title, chunk_count=len(doc.chunks), upload_date=doc.upload_date)


class SearchRequest(BaseModel):
    """Input schema for POST /search. top_k defaults to the configured value."""
    query: str
    top_k: Optional[int] = Field(default=None, ge=0)


class SearchHit(BaseModel):
    chunk_id:  str
    source_id: str
    text:      str
    score:     float


class AnalyzeRequest(BaseModel):
    """Input schema for POST /analyze."""
    log: str


# ── Knowledge base state ───────────────────────────────────────────────────────

settings       = SETTINGS
knowledge_base = KnowledgeBase()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the knowledge base once at startup; release on shutdown."""
    log.info("Service startup — seeding knowledge base from %s", settings.data_dir)
    try:
        ingest_directory(
            settings.data_dir,
            knowledge_base,
            chunk_size    = settings.chunk_size,
            chunk_overlap = settings.chunk_overlap,
        )
    except FileNotFoundError as exc:
        log.warning("No seed documents loaded — starting empty (%s)", exc)

    log.info("Knowledge base ready — %d chunks from %d document(s)",
             len(knowledge_base.chunks_snapshot()), len(knowledge_base))
    yield
    log.info("Service shutdown — knowledge base released")


# ── FastAPI app ────────────────────────────────────────────────────────────────

app = FastAPI(
    title       = "Log Triage RAG API",
    description = (
        "Paste a raw infrastructure error log and receive a diagnosis that "
        "cites the documentation it was grounded on."
    ),
    version  = "1.0.0",
    lifespan = lifespan,
)


# ── Endpoints ──────────────────────────────────────────────────────────────────

@app.get("/health", tags=["ops"])
def health_check():
    """Liveness probe. Does NOT call the language model."""
    return {
        "status":           "ok",
        "query_model":      settings.query_model,
        "generation_model": settings.gen_model,
        "documents_loaded": len(knowledge_base),
        "chunks_loaded":    len(knowledge_base.chunks_snapshot()),
    }


@app.get("/documents", tags=["knowledge-base"], response_model=List[DocumentSummary])
def list_documents():
    return [DocumentSummary.from_doc(doc) for doc in knowledge_base.documents()]


@app.post(
    "/documents",
    tags           = ["knowledge-base"],
    response_model = DocumentSummary,
    status_code    = status.HTTP_201_CREATED,
)
def add_document(request: DocumentCreate):
    """Chunk and store a new document."""
    try:
        doc = knowledge_base.add_document(
            title         = request.title,
            content       = request.content,
            chunk_size    = settings.chunk_size,
            chunk_overlap = settings.chunk_overlap,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return DocumentSummary.from_doc(doc)


@app.get("/documents/{doc_id}", tags=["knowledge-base"], response_model=KnowledgeDoc)
def get_document(doc_id: str):
    try:
        return knowledge_base.get_document(doc_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown document '{doc_id}'.") from exc


@app.delete("/documents/{doc_id}", tags=["knowledge-base"], response_model=DocumentSummary)
def delete_document(doc_id: str):
    """Remove a document; its chunks go with it."""
    try:
        doc = knowledge_base.delete_document(doc_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown document '{doc_id}'.") from exc
    return DocumentSummary.from_doc(doc)


@app.post("/search", tags=["rag"], response_model=List[SearchHit])
def search(request: SearchRequest):
    """Local lexical retrieval only — no language-model calls."""
    top_k   = settings.top_k if request.top_k is None else request.top_k
    results = retrieve_scored(request.query, knowledge_base.chunks_snapshot(), top_k)
    return [
        SearchHit(
            chunk_id  = r.chunk.id,
            source_id = r.chunk.source_id,
            text      = r.chunk.content,
            score     = round(r.score, 4),
        )
        for r in results
    ]


@app.post("/analyze", tags=["rag"])
def analyze(request: AnalyzeRequest):
    """
    Run the full pipeline for one pasted log.

    Raises:
        422 Unprocessable Entity:  if the log is blank
        502 Bad Gateway:           if the LLM host rejects the credentials, rate-limits
                                   the request or returns an unusable response
        503 Service Unavailable:   if the LLM host is unreachable
        500 Internal Server Error: if the pipeline output fails schema validation
    """
    if not request.log.strip():
        raise HTTPException(status_code=422, detail="log must not be empty.")

    log.info("POST /analyze — received log of %d chars", len(request.log))
    try:
        response = analyze_log(
            request.log,
            knowledge_base.chunks_snapshot(),
            settings = settings,
        )
    except ConnectionError as exc:
        log.error("POST /analyze failed — LLM host unreachable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except PermissionError as exc:
        log.error("POST /analyze failed — LLM credentials rejected: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except RuntimeError as exc:
        log.error("POST /analyze failed — LLM host error: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValidationError as exc:
        log.error("POST /analyze failed — validation error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    log.info("POST /analyze complete — %d sources retrieved", len(response["sources"]))
    return response
