"""Pytest configuration to make the local package importable without installation."""
import json
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def disable_ai(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Disable remote LLM calls during tests to avoid token usage."""

    monkeypatch.setenv("AI_ENRICHMENT_DISABLED", "1")
    monkeypatch.setenv("AI_SECRET_FILE", str(tmp_path / "missing.env"))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def dummy_data_dir() -> Path:
    """Return the built-in sample payload directory for tests."""

    return ROOT / "dummy_data" / "receipts"


@pytest.fixture
def expected_row_count() -> int:
    """Item rows produced by the accepted sample receipts."""

    # Trader Joe's keeps two priced items, Corner Market keeps two of three.
    return 4


@pytest.fixture
def trader_joes_payload(dummy_data_dir: Path) -> dict:
    return json.loads((dummy_data_dir / "trader_joes_portland.json").read_text(encoding="utf-8"))


@pytest.fixture
def corner_market_payload(dummy_data_dir: Path) -> dict:
    return json.loads((dummy_data_dir / "corner_market_sparse.json").read_text(encoding="utf-8"))
