"""
Pytest configuration for the audit flattener.

Provides fixtures for:
- Settings isolation (no `.env` or environment leakage between tests)
- In-memory audit records with known payload shapes
- Synthetic export files produced by `scripts/generate_data.py`
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, List

import pytest

from audit_flattener.config import Settings, get_settings
from audit_flattener.domain.models import AuditRecord

ENV_KEYS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "DISCOVERY_STRATEGY",
    "COLLISION_PREFIX",
    "ERROR_MESSAGE_LIMIT",
    "PROGRESS_EVERY",
    "CSV_DELIMITER",
    "OUTPUT_ENCODING",
    "RESULTS_DIR",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path: Path):
    """
    Run every test with default settings, results written under tmp_path.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(log_level="DEBUG", progress_every=0)


@pytest.fixture
def make_record() -> Callable[..., AuditRecord]:
    """
    Factory for AuditRecord with sensible metadata defaults.
    """
    counter = {"n": 0}

    def _make(operation: str, audit_data: str | dict, **overrides) -> AuditRecord:
        counter["n"] += 1
        if isinstance(audit_data, dict):
            audit_data = json.dumps(audit_data, separators=(",", ":"))
        fields = {
            "CreationDate": f"2024-01-01T00:00:{counter['n']:02d}",
            "Identity": f"id-{counter['n']}",
            "Operations": operation,
            "RecordType": "ExchangeAdmin",
            "ResultCount": 3,
            "ResultIndex": counter["n"],
            "UserIds": "admin@contoso.com",
            "AuditData": audit_data,
        }
        fields.update(overrides)
        return AuditRecord.model_validate(fields)

    return _make


@pytest.fixture
def scenario_records(make_record) -> List[AuditRecord]:
    """
    Three records, operations A, A, B: a scalar payload, a malformed payload,
    and an array payload.
    """
    return [
        make_record("A", '{"x":1}'),
        make_record("A", '{"x":'),
        make_record("B", '{"y":[1,2]}'),
    ]


@pytest.fixture
def generated_csv(tmp_path: Path) -> Path:
    """
    A 200-record Export-Csv style file with some truncated payloads.
    """
    from scripts.generate_data import _generate_records, _write_csv

    path = tmp_path / "audit.csv"
    _write_csv(path, _generate_records(rows=200, seed=7, malformed_rate=0.05))
    return path


@pytest.fixture
def generated_clixml(tmp_path: Path) -> Path:
    """
    The same 200 records as `generated_csv`, as a CLIXML object stream.
    """
    from scripts.generate_data import _generate_records, _write_clixml

    path = tmp_path / "audit.xml"
    _write_clixml(path, _generate_records(rows=200, seed=7, malformed_rate=0.05))
    return path
