"""Logging coverage to ensure errors are surfaced without stopping the run."""
import logging
from pathlib import Path

import receiptflow.pipeline as pipeline
from receiptflow.core.logging import configure_logging
from receiptflow.enrichment.engine import LLMEnricher


def test_load_payloads_logs_and_continues(tmp_path: Path, caplog):
    """Unreadable files should be logged and not stop other payloads from loading."""

    (tmp_path / "good.json").write_text('{"result": {"establishment": "Corner Market"}}', encoding="utf-8")
    (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")

    caplog.set_level("ERROR")
    payloads, alerts = pipeline.load_payloads(tmp_path)

    assert [name for name, _ in payloads] == ["good.json"]
    assert alerts == ["Failed to read payload bad.json"]
    assert any("Failed to read payload" in message for message in caplog.messages)


def test_run_pipeline_logs_output_location(tmp_path: Path, dummy_data_dir: Path, caplog):
    caplog.set_level("INFO")
    output_path = tmp_path / "mapped.csv"

    pipeline.run_pipeline(dummy_data_dir, output_path)

    assert any("Wrote CSV output" in message for message in caplog.messages)
    assert any("Rejected 1 receipts" in message for message in caplog.messages)


def test_enrichment_fallback_is_logged(tmp_path: Path, dummy_data_dir: Path, caplog):
    """An unreachable AI backend degrades to rules with warnings."""

    class _Offline:
        async def complete_json(self, prompt):
            raise RuntimeError("network down")

    caplog.set_level("WARNING")
    output_path = tmp_path / "mapped.csv"

    pipeline.run_pipeline(dummy_data_dir, output_path, enricher=LLMEnricher(_Offline()))

    assert output_path.exists()
    assert any("AI store enhancement failed" in message for message in caplog.messages)


def test_configure_logging_reads_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    calls = {}

    def fake_basic_config(**kwargs):
        calls.update(kwargs)

    monkeypatch.setattr(logging, "basicConfig", fake_basic_config)

    configure_logging()
    assert calls["level"] == "DEBUG"

    configure_logging("warning")
    assert calls["level"] == "WARNING"
