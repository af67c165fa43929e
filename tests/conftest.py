"""
Shared fixtures for the test suite.

Provides: Settings pointed at a fake LLM host, a stubbed LLM transport,
sample chunks and a seeded knowledge base. No test touches the network.
"""

from typing import Any, Dict, List, Optional

import pytest

from lograg.config import Settings
from lograg.knowledge_base import KnowledgeBase
from lograg.models import Chunk


class FakeLLM:
    """Stands in for ollama_post in the query cleaner and the generator."""

    def __init__(self) -> None:
        self.query    = "connection refused port 3306"
        self.solution = "Start mysqld and check bind-address [Source ID: doc-1]."
        self.error: Optional[Exception] = None
        self.fail_on: Optional[str] = None   # "clean" | "generate"
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, stage: str, url: str, payload: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        self.calls.append({"stage": stage, "url": url, "payload": payload, **kwargs})
        if self.error is not None and self.fail_on in (None, stage):
            raise self.error
        return {"response": self.query if stage == "clean" else self.solution}

    def clean(self, url, payload, timeout=60, api_key=None):
        return self._respond("clean", url, payload, timeout=timeout, api_key=api_key)

    def generate(self, url, payload, timeout=60, api_key=None):
        return self._respond("generate", url, payload, timeout=timeout, api_key=api_key)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with a fake host and an empty data directory."""
    return Settings(
        llm_url     = "http://llm.test:11434/",
        api_key     = "secret-token",
        gen_model   = "gen-model",
        query_model = "query-model",
        top_k       = 2,
        data_dir    = tmp_path,
    )


@pytest.fixture
def fake_llm(monkeypatch) -> FakeLLM:
    """Patches both LLM call sites with a recording fake."""
    fake = FakeLLM()
    monkeypatch.setattr("lograg.query_cleaner.ollama_post", fake.clean)
    monkeypatch.setattr("lograg.generator.ollama_post", fake.generate)
    return fake


@pytest.fixture
def sample_chunks() -> List[Chunk]:
    return [
        Chunk(id="doc-1-chunk-0", source_id="doc-1", content="MySQL connection refused on port 3306", index=0),
        Chunk(id="doc-1-chunk-1", source_id="doc-1", content="Tune connection pooling timeouts", index=1),
        Chunk(id="doc-2-chunk-0", source_id="doc-2", content="Kubernetes rollback with kubectl rollout undo", index=0),
        Chunk(id="doc-2-chunk-1", source_id="doc-2", content="ImagePullBackOff means the image cannot be pulled", index=1),
    ]


@pytest.fixture
def knowledge_base() -> KnowledgeBase:
    kb = KnowledgeBase()
    kb.add_document(
        "MySQL Runbook",
        "Connection refused on port 3306 means mysqld is not listening.\n\n"
        "Too many connections: raise max_connections or tune pooling.",
    )
    kb.add_document(
        "K8s Guide",
        "CrashLoopBackOff: inspect kubectl logs --previous.\n\n"
        "Rollback with kubectl rollout undo.",
    )
    return kb
