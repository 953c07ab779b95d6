import pytest

from app.db import bootstrap


def test_runtime_schema_bootstrap_raises_on_missing_tables(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "missing_schema_items", lambda connection: (["timetable_entries"], {}))

    with pytest.raises(RuntimeError, match="Runtime schema bootstrap failed"):
        bootstrap.ensure_runtime_schema()


def test_missing_schema_items_reports_nothing_on_a_fresh_schema(db_session):
    missing_tables, missing_columns = bootstrap.missing_schema_items(db_session.connection())
    assert missing_tables == []
    assert missing_columns == {}
