"""
Integration tests for migration runs driven by YAML config
"""

import json

import pytest
import yaml
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import MigrationConfigError
from ingestion.config_loader import load_migrations, parse_migration
from ingestion.runner import MigrationRunner
from models import Article
from models.base import MigrationStatus


def article_migration(path, **extra):
    migration = {
        "file": str(path),
        "class": "Article",
        "batchSize": 2,
        "fieldMap": {
            "id": {"type": "unique", "dest": "external_id"},
            "title": {"dest": "title"},
        },
    }
    migration.update(extra)
    return migration


@pytest.fixture
def runner_factory(db_session, asset_fetcher, tmp_path):
    def _make(stop_on_error=None):
        return MigrationRunner(
            session=db_session,
            checkpoint_dir=str(tmp_path / "checkpoints"),
            assets_dir=str(tmp_path / "assets"),
            asset_fetcher=asset_fetcher,
            stop_on_error=stop_on_error,
        )

    return _make


def count_articles(session):
    return session.execute(select(func.count()).select_from(Article)).scalar_one()


class TestLoadMigrations:
    def test_loads_entries(self, tmp_path):
        config = tmp_path / "migrations.yml"
        config.write_text(yaml.safe_dump({"JsonMigrations": [article_migration("a.jsonl")]}), encoding="utf-8")

        migrations = load_migrations(str(config))

        assert len(migrations) == 1
        spec = parse_migration(migrations[0], 0)
        assert spec.target_kind == "Article"
        assert spec.batch_size == 2

    def test_empty_file(self, tmp_path):
        config = tmp_path / "migrations.yml"
        config.write_text("", encoding="utf-8")

        assert load_migrations(str(config)) == []

    @pytest.mark.parametrize("content", [
        "JsonMigrations: [unclosed",
        "- just\n- a list\n",
        "JsonMigrations: not-a-list\n",
    ])
    def test_bad_config(self, tmp_path, content):
        config = tmp_path / "migrations.yml"
        config.write_text(content, encoding="utf-8")

        with pytest.raises(MigrationConfigError):
            load_migrations(str(config))

    def test_missing_file(self, tmp_path):
        with pytest.raises(MigrationConfigError, match="Config file not found"):
            load_migrations(str(tmp_path / "nope.yml"))

    def test_invalid_entry(self):
        with pytest.raises(MigrationConfigError):
            parse_migration({"file": "a.json", "class": "Article", "fieldMap": {"x": {"type": "images"}}}, 3)


class TestMigrationRunner:
    def test_runs_all_migrations(self, runner_factory, db_session, write_jsonl):
        first = write_jsonl("first.jsonl", [{"id": "1", "title": "One"}, {"id": "2", "title": "Two"}])
        second = write_jsonl("second.jsonl", [{"id": "3", "title": "Three"}, {"id": "4"}])

        summary = runner_factory().run([article_migration(first), article_migration(second)])

        assert [r.status for r in summary.reports] == [MigrationStatus.SUCCESS, MigrationStatus.PARTIAL]
        assert summary.reports[1].stats["records_invalid"] == 1
        assert summary.stopped is False
        assert count_articles(db_session) == 3

    def test_incomplete_migration_skipped(self, runner_factory, write_jsonl):
        source = write_jsonl("a.jsonl", [{"id": "1", "title": "One"}])

        summary = runner_factory().run([{"class": "Article"}, article_migration(source)])

        assert [r.status for r in summary.reports] == [MigrationStatus.SKIPPED, MigrationStatus.SUCCESS]

    def test_failed_migration_isolated(self, runner_factory, db_session, tmp_path, write_jsonl):
        source = write_jsonl("a.jsonl", [{"id": "1", "title": "One"}])

        summary = runner_factory().run([
            article_migration(tmp_path / "missing.jsonl"),
            article_migration(source),
        ])

        assert [r.status for r in summary.reports] == [MigrationStatus.FAILED, MigrationStatus.SUCCESS]
        assert summary.reports[0].error
        assert count_articles(db_session) == 1

    def test_migration_stop_on_error_stops_run(self, runner_factory, db_session, tmp_path, write_jsonl):
        broken = tmp_path / "broken.jsonl"
        broken.write_text('{"id": "1", "title": "One"}\n{oops\n', encoding="utf-8")
        source = write_jsonl("a.jsonl", [{"id": "2", "title": "Two"}])

        summary = runner_factory().run([
            article_migration(broken, stopOnError=True),
            article_migration(source),
        ])

        assert summary.stopped is True
        assert len(summary.reports) == 1
        assert summary.reports[0].status == MigrationStatus.FAILED

    def test_runner_flag_overrides_migration_flag(self, runner_factory, tmp_path, write_jsonl):
        source = write_jsonl("a.jsonl", [{"id": "2", "title": "Two"}])

        summary = runner_factory(stop_on_error=False).run([
            article_migration(tmp_path / "missing.jsonl", stopOnError=True),
            article_migration(source),
        ])

        assert summary.stopped is False
        assert len(summary.reports) == 2

    def test_validation_error_with_stop_on_error_fails_migration(self, runner_factory, write_jsonl):
        source = write_jsonl("a.jsonl", [{"id": "1", "title": "One"}, {"id": "2"}, {"id": "3", "title": "Three"}])

        summary = runner_factory().run([article_migration(source, stopOnError=True)])

        assert summary.reports[0].status == MigrationStatus.FAILED
        assert "Title must not be empty" in summary.reports[0].error
        assert summary.stopped is True


class TestRunMigrationScript:
    @pytest.fixture
    def configured(self, monkeypatch, tmp_path):
        db_path = tmp_path / "cli.db"
        monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{db_path}")
        monkeypatch.setattr(settings, "CHECKPOINT_DIR", str(tmp_path / "checkpoints"))
        monkeypatch.setattr(settings, "ASSETS_DIR", str(tmp_path / "assets"))
        monkeypatch.setattr("scripts.run_migration.setup_logging", lambda **kwargs: None)
        return db_path

    def write_config(self, tmp_path, migrations):
        config = tmp_path / "migrations.yml"
        config.write_text(yaml.safe_dump({"JsonMigrations": migrations}), encoding="utf-8")
        return config

    def test_main_imports_records(self, configured, tmp_path):
        from scripts.run_migration import main

        source = tmp_path / "articles.json"
        source.write_text(json.dumps([{"id": "1", "title": "One"}, {"id": "2", "title": "Two"}]), encoding="utf-8")
        config = self.write_config(tmp_path, [article_migration(source)])

        assert main(["--config", str(config)]) == 0

        engine = create_engine(f"sqlite:///{configured}")
        with Session(engine) as session:
            assert count_articles(session) == 2
        engine.dispose()

    def test_main_stop_on_error_exit_code(self, configured, tmp_path):
        from scripts.run_migration import main

        config = self.write_config(tmp_path, [article_migration(tmp_path / "missing.jsonl")])

        assert main(["--config", str(config)]) == 0
        assert main(["--config", str(config), "--stop-on-error"]) == 1

    def test_main_missing_config(self, configured, tmp_path):
        from scripts.run_migration import main

        assert main(["--config", str(tmp_path / "nope.yml")]) == 1
