"""Tests for the HTTP transport, the query cleaner and the generator."""

import io
import json
import urllib.error

import pytest

from lograg import _http
from lograg.generator import EMPTY_RESPONSE, NO_CONTEXT_BLOCK, format_context, generate_solution
from lograg.query_cleaner import clean_log_to_query

RAW_LOG = "[2023-10-10 10:00:00] ERROR: Connection refused at 192.168.1.1 port 3306"


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


# ============================================================================
# _http.ollama_post
# ============================================================================


class TestOllamaPost:

    def test_posts_json_with_bearer_token(self, monkeypatch) -> None:
        captured = {}

        def fake_urlopen(request, timeout):
            captured["request"] = request
            captured["timeout"] = timeout
            return _FakeResponse(json.dumps({"response": "ok"}).encode("utf-8"))

        monkeypatch.setattr(_http.urllib.request, "urlopen", fake_urlopen)

        result = _http.ollama_post("http://llm.test/api/generate", {"model": "m"}, timeout=5, api_key="tok")

        request = captured["request"]
        assert result == {"response": "ok"}
        assert captured["timeout"] == 5
        assert request.get_method() == "POST"
        assert json.loads(request.data) == {"model": "m"}
        assert request.get_header("Authorization") == "Bearer tok"

    def test_no_authorization_header_without_key(self, monkeypatch) -> None:
        captured = {}

        def fake_urlopen(request, timeout):
            captured["request"] = request
            return _FakeResponse(b"{}")

        monkeypatch.setattr(_http.urllib.request, "urlopen", fake_urlopen)
        _http.ollama_post("http://llm.test/api/generate", {})

        assert captured["request"].get_header("Authorization") is None

    def test_unreachable_host_raises_connection_error(self, monkeypatch) -> None:
        def fake_urlopen(request, timeout):
            raise urllib.error.URLError("connection refused")

        monkeypatch.setattr(_http.urllib.request, "urlopen", fake_urlopen)
        with pytest.raises(ConnectionError):
            _http.ollama_post("http://llm.test/api/generate", {})

    @pytest.mark.parametrize("code", [401, 403])
    def test_rejected_credentials_raise_permission_error(self, monkeypatch, code: int) -> None:
        def fake_urlopen(request, timeout):
            raise urllib.error.HTTPError(request.full_url, code, "denied", None, None)

        monkeypatch.setattr(_http.urllib.request, "urlopen", fake_urlopen)
        with pytest.raises(PermissionError):
            _http.ollama_post("http://llm.test/api/generate", {})

    def test_other_http_errors_raise_runtime_error(self, monkeypatch) -> None:
        def fake_urlopen(request, timeout):
            raise urllib.error.HTTPError(request.full_url, 429, "Too Many Requests", None, None)

        monkeypatch.setattr(_http.urllib.request, "urlopen", fake_urlopen)
        with pytest.raises(RuntimeError, match="429"):
            _http.ollama_post("http://llm.test/api/generate", {})

    def test_invalid_json_raises_runtime_error(self, monkeypatch) -> None:
        monkeypatch.setattr(
            _http.urllib.request, "urlopen", lambda request, timeout: _FakeResponse(b"<html>")
        )
        with pytest.raises(RuntimeError):
            _http.ollama_post("http://llm.test/api/generate", {})


# ============================================================================
# query cleaning
# ============================================================================


class TestCleanLogToQuery:

    def test_returns_model_query(self, settings, fake_llm) -> None:
        assert clean_log_to_query(RAW_LOG, settings) == "connection refused port 3306"

        call = fake_llm.calls[0]
        assert call["url"] == "http://llm.test:11434/api/generate"
        assert call["payload"]["model"] == "query-model"
        assert call["payload"]["stream"] is False
        assert RAW_LOG in call["payload"]["prompt"]
        assert call["api_key"] == "secret-token"

    def test_strips_quotes_around_query(self, settings, fake_llm) -> None:
        fake_llm.query = '  "OOMKilled container"  '
        assert clean_log_to_query(RAW_LOG, settings) == "OOMKilled container"

    def test_empty_model_output_falls_back_to_raw_log(self, settings, fake_llm) -> None:
        fake_llm.query = "   "
        assert clean_log_to_query(f"  {RAW_LOG}\n", settings) == RAW_LOG

    def test_blank_log_rejected_without_calling_model(self, settings, fake_llm) -> None:
        with pytest.raises(ValueError):
            clean_log_to_query("  \n ", settings)
        assert fake_llm.calls == []

    def test_transport_errors_propagate(self, settings, fake_llm) -> None:
        fake_llm.error = ConnectionError("down")
        with pytest.raises(ConnectionError):
            clean_log_to_query(RAW_LOG, settings)


# ============================================================================
# generation
# ============================================================================


class TestGenerateSolution:

    def test_context_labels_each_chunk_with_its_source(self, sample_chunks) -> None:
        context = format_context(sample_chunks[:2])
        assert context == (
            "[Source ID: doc-1]: MySQL connection refused on port 3306\n\n"
            "[Source ID: doc-1]: Tune connection pooling timeouts"
        )

    def test_prompt_contains_context_query_and_citation_rule(self, settings, fake_llm, sample_chunks) -> None:
        answer = generate_solution("connection refused", sample_chunks[:1], settings)

        prompt = fake_llm.calls[0]["payload"]["prompt"]
        assert answer == fake_llm.solution
        assert fake_llm.calls[0]["payload"]["model"] == "gen-model"
        assert "[Source ID: doc-1]: MySQL connection refused on port 3306" in prompt
        assert "connection refused" in prompt
        assert "cite the Source ID" in prompt

    def test_empty_context_is_allowed(self, settings, fake_llm) -> None:
        generate_solution("disk full", [], settings)
        assert NO_CONTEXT_BLOCK in fake_llm.calls[0]["payload"]["prompt"]

    def test_empty_model_output_uses_placeholder(self, settings, fake_llm, sample_chunks) -> None:
        fake_llm.solution = ""
        assert generate_solution("disk full", sample_chunks, settings) == EMPTY_RESPONSE

    def test_blank_query_rejected(self, settings, fake_llm, sample_chunks) -> None:
        with pytest.raises(ValueError):
            generate_solution(" ", sample_chunks, settings)
