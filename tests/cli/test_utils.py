"""Tests for CLI utilities.

Covers:
- load_records() parsing and error reporting
- build_index() behavior when embeddings are disabled or unavailable
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import pytest

from issuerank.cli.utils import build_index, fail, load_records
from issuerank.config.models import EmbeddingConfig
from issuerank.core.errors import RecordNotFound


class TestLoadRecords:
    """Tests for load_records function."""

    def test_loads_issue_list(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text(
            json.dumps(
                [
                    {"id": 1, "number": 10, "title": "First", "labels": [{"name": "bug"}]},
                    {"id": 2, "title": "Second", "body": "text"},
                ]
            )
        )

        records = load_records(path)

        assert [r.id for r in records] == [1, 2]
        assert records[0].labels == ("bug",)
        assert records[1].number == 2

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text("[{")
        with pytest.raises(click.ClickException, match="not valid JSON"):
            load_records(path)

    def test_top_level_must_be_list(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text('{"id": 1}')
        with pytest.raises(click.ClickException, match="JSON list"):
            load_records(path)

    def test_item_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text('[{"id": 1}, "nope"]')
        with pytest.raises(click.ClickException, match="Issue #1"):
            load_records(path)

    def test_item_missing_id(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text('[{"title": "no id"}]')
        with pytest.raises(click.ClickException, match="invalid"):
            load_records(path)


class TestBuildIndex:
    """Tests for build_index function."""

    def test_disabled_returns_none(self) -> None:
        assert build_index(EmbeddingConfig(enabled=False), required=False) is None

    def test_disabled_but_required_raises(self) -> None:
        with pytest.raises(click.ClickException, match="disabled"):
            build_index(EmbeddingConfig(enabled=False), required=True)

    def test_unavailable_encoder_warns(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def missing(*_args: object) -> None:
            raise ImportError("No module named 'fastembed'")

        monkeypatch.setattr("issuerank.search.embedding.load_fastembed_encoder", missing)

        assert build_index(EmbeddingConfig(init_timeout_sec=5), required=False) is None
        assert "embeddings unavailable" in capsys.readouterr().err

    def test_unavailable_encoder_required_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def missing(*_args: object) -> None:
            raise ImportError("No module named 'fastembed'")

        monkeypatch.setattr("issuerank.search.embedding.load_fastembed_encoder", missing)

        with pytest.raises(click.ClickException, match="fastembed is not installed"):
            build_index(EmbeddingConfig(init_timeout_sec=5), required=True)


class TestFail:
    """Tests for fail function."""

    def test_uses_error_message(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("issuerank.cli.utils.get_log_file_path", lambda: None)
        exc = fail(RecordNotFound.for_id(7))
        assert isinstance(exc, click.ClickException)
        assert exc.message == "Record 7 not found"

    def test_points_at_log_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        log_file = tmp_path / "issuerank.log"
        monkeypatch.setattr("issuerank.cli.utils.get_log_file_path", lambda: log_file)
        exc = fail(RecordNotFound.for_id(7))
        assert exc.message == f"Record 7 not found (details in {log_file})"
