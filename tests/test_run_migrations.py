from __future__ import annotations

import types

import pytest
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


def _project_config():
    return runner.get_alembic_config(str(runner.PROJECT_ROOT / "alembic.ini"))


def test_resolve_database_url_prefers_env(monkeypatch) -> None:
    monkeypatch.setenv("LUX_DATABASE_URL", "sqlite://")
    config = _project_config()
    assert runner.resolve_database_url(config) == "sqlite://"
    assert config.get_main_option("sqlalchemy.url") == "sqlite://"


def test_resolve_database_url_requires_env(monkeypatch) -> None:
    monkeypatch.delenv("LUX_DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        runner.resolve_database_url(_project_config())


def test_explicit_url_is_kept(monkeypatch) -> None:
    monkeypatch.setenv("LUX_DATABASE_URL", "sqlite://")
    config = _project_config()
    config.set_main_option("sqlalchemy.url", "sqlite:///explicit.db")
    assert runner.resolve_database_url(config) == "sqlite:///explicit.db"


def test_wait_for_database_succeeds_with_sqlite(tmp_path) -> None:
    runner.wait_for_database(f"sqlite:///{tmp_path / 'ready.sqlite'}", timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_run_migrations_invokes_upgrade(monkeypatch) -> None:
    monkeypatch.setenv("LUX_DATABASE_URL", "sqlite://")
    recorded: dict[str, object] = {}

    def fake_wait(url: str, *, timeout: int, poll_interval: float) -> None:
        recorded["wait"] = (url, timeout, poll_interval)

    def fake_upgrade(cfg, revision: str) -> None:
        recorded["revision"] = revision
        recorded["script_location"] = cfg.get_main_option("script_location")

    monkeypatch.setattr(runner, "wait_for_database", fake_wait)
    monkeypatch.setattr(runner.command, "upgrade", fake_upgrade)
    monkeypatch.setattr(runner, "missing_tables", lambda url: [])

    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=_project_config())

    assert recorded["revision"] == "head"
    assert recorded["wait"] == ("sqlite://", 5, 0.1)
    assert str(recorded["script_location"]).endswith("alembic")


def test_migrations_create_content_tables(tmp_path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    monkeypatch.setenv("LUX_DATABASE_URL", url)

    runner.run_migrations("head", timeout=2, poll_interval=0.1, config=_project_config())

    engine = create_engine(url, future=True)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {
        "assessments",
        "modifier_content",
        "student_assessment_results",
        "persistence_audit_events",
    } <= tables


def test_main_reports_failure(monkeypatch) -> None:
    monkeypatch.delenv("LUX_DATABASE_URL", raising=False)
    assert runner.main(["--timeout", "0"]) == 1


def test_missing_tables_on_empty_database(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'empty.sqlite'}"
    assert runner.missing_tables(url) == list(runner.CONTENT_TABLES)


def test_seed_if_empty_loads_packaged_content(tmp_path, monkeypatch) -> None:
    from luxlibris.assessment_store import content_store
    from luxlibris.config import get_settings
    from luxlibris.db.session import dispose_engine

    url = f"sqlite:///{tmp_path / 'seeded.sqlite'}"
    monkeypatch.setenv("LUX_DATABASE_URL", url)
    get_settings.cache_clear()
    dispose_engine()
    try:
        runner.run_migrations("head", timeout=2, poll_interval=0.1, config=_project_config(), seed_if_empty=True)
        assert content_store.count("nominee_quiz") == 2
        assert content_store.count("reading_dna") == 1
        assert len(content_store.modifier_table("student")) == 8

        assert runner.seed_empty_content() == []
    finally:
        dispose_engine()
        get_settings.cache_clear()
