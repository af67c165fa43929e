"""Tests for the analysis pipeline and the CLI entry point."""

import json
from dataclasses import replace

import pytest

import app
from app import PIPELINE_STEPS, analyze_log
from validator.json_validator import ValidationError

RAW_LOG = "2024-01-01T00:00:00Z mysql ERROR 2003: Can't connect, connection refused on 3306"


def _json_from(out: str) -> dict:
    # log lines share stdout with the printed response
    return json.loads(out[out.index("{\n"):])


def _recorder():
    events = []

    def on_step(step):
        events.append((step.id, step.status))

    return events, on_step


class TestAnalyzeLog:

    def test_full_pipeline_returns_validated_response(self, settings, fake_llm, sample_chunks) -> None:
        response = analyze_log(RAW_LOG, sample_chunks, settings)

        assert response["original_log"] == RAW_LOG
        assert response["search_query"] == "connection refused port 3306"
        assert response["solution"] == fake_llm.solution
        assert response["model"] == "gen-model"
        assert [s["chunk_id"] for s in response["sources"]] == ["doc-1-chunk-0", "doc-1-chunk-1"]
        assert response["sources"][0]["score"] > response["sources"][1]["score"]

    def test_retrieval_uses_the_cleaned_query(self, settings, fake_llm, sample_chunks) -> None:
        fake_llm.query = "kubectl rollout undo"
        response = analyze_log(RAW_LOG, sample_chunks, settings)

        assert response["sources"][0]["chunk_id"] == "doc-2-chunk-0"
        assert "[Source ID: doc-2]" in fake_llm.calls[1]["payload"]["prompt"]

    def test_top_k_bounds_sources(self, settings, fake_llm, sample_chunks) -> None:
        response = analyze_log(RAW_LOG, sample_chunks, replace(settings, top_k=1))
        assert len(response["sources"]) == 1

    def test_empty_knowledge_base_still_generates(self, settings, fake_llm) -> None:
        response = analyze_log(RAW_LOG, [], settings)

        assert response["sources"] == []
        assert [c["stage"] for c in fake_llm.calls] == ["clean", "generate"]

    def test_step_progress_is_reported_in_order(self, settings, fake_llm, sample_chunks) -> None:
        events, on_step = _recorder()
        analyze_log(RAW_LOG, sample_chunks, settings, on_step=on_step)

        expected = []
        for step_id, _label in PIPELINE_STEPS:
            expected += [(step_id, "loading"), (step_id, "complete")]
        assert events == expected

    def test_failed_step_is_marked_and_error_propagates(self, settings, fake_llm, sample_chunks) -> None:
        fake_llm.error   = ConnectionError("LLM host is not reachable")
        fake_llm.fail_on = "generate"
        events, on_step  = _recorder()

        with pytest.raises(ConnectionError):
            analyze_log(RAW_LOG, sample_chunks, settings, on_step=on_step)

        assert events[-2:] == [("4", "loading"), ("4", "error")]
        assert ("3", "complete") in events

    def test_failure_in_query_cleaning_stops_pipeline(self, settings, fake_llm, sample_chunks) -> None:
        fake_llm.error = PermissionError("rejected")
        events, on_step = _recorder()

        with pytest.raises(PermissionError):
            analyze_log(RAW_LOG, sample_chunks, settings, on_step=on_step)

        assert events[-1] == ("2", "error")
        assert len(fake_llm.calls) == 1

    def test_blank_log_rejected(self, settings, fake_llm, sample_chunks) -> None:
        with pytest.raises(ValueError):
            analyze_log("   ", sample_chunks, settings)
        assert fake_llm.calls == []

    def test_invalid_output_raises_validation_error(self, settings, fake_llm, sample_chunks) -> None:
        with pytest.raises(ValidationError):
            analyze_log(RAW_LOG, sample_chunks, replace(settings, gen_model=" "))


class TestMain:

    def test_prints_validated_json(self, settings, fake_llm, monkeypatch, capsys) -> None:
        (settings.data_dir / "mysql.md").write_text(
            "Connection refused on port 3306: start mysqld.", encoding="utf-8"
        )
        monkeypatch.setattr(app, "SETTINGS", settings)

        assert app.main([RAW_LOG]) == 0

        output = _json_from(capsys.readouterr().out)
        assert output["search_query"] == "connection refused port 3306"
        assert len(output["sources"]) == 1

    def test_reads_log_from_file(self, settings, fake_llm, monkeypatch, tmp_path, capsys) -> None:
        (settings.data_dir / "mysql.md").write_text("connection refused", encoding="utf-8")
        log_file = tmp_path / "incident.log"
        log_file.write_text(RAW_LOG, encoding="utf-8")
        monkeypatch.setattr(app, "SETTINGS", settings)

        assert app.main([str(log_file)]) == 0
        assert _json_from(capsys.readouterr().out)["original_log"] == RAW_LOG

    def test_missing_documents_exit_code(self, settings, fake_llm, monkeypatch) -> None:
        monkeypatch.setattr(app, "SETTINGS", settings)
        assert app.main([RAW_LOG]) == 1

    def test_unreachable_llm_exit_code(self, settings, fake_llm, monkeypatch) -> None:
        (settings.data_dir / "mysql.md").write_text("connection refused", encoding="utf-8")
        fake_llm.error = ConnectionError("down")
        monkeypatch.setattr(app, "SETTINGS", settings)

        assert app.main([RAW_LOG]) == 1
