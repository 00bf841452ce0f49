from __future__ import annotations

from pathlib import Path

from factory_portal.database.models import Base

EXPECTED_TABLES = {
    "user_accounts",
    "client_profiles",
    "runs",
    "run_stages",
    "guitars",
    "guitar_notes",
    "note_comments",
    "run_updates",
    "run_update_comments",
    "invoices",
    "notifications",
}


def test_model_metadata_contains_portal_tables():
    assert EXPECTED_TABLES == set(Base.metadata.tables.keys())


def test_baseline_migration_creates_every_table():
    versions = Path(__file__).resolve().parents[3] / "migrations" / "versions"
    content = "".join(path.read_text(encoding="utf-8") for path in sorted(versions.glob("*.py")))
    for table in EXPECTED_TABLES:
        assert f'"{table}"' in content


def test_notification_metadata_column_keeps_document_name():
    assert "metadata" in Base.metadata.tables["notifications"].columns
