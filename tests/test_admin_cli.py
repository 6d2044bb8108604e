"""Tests for the marketplace-admin operator commands."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from marketplace.admin_cli import build_parser, main
from marketplace.config import get_settings
from marketplace.services.auth import verify_token
from marketplace.store import open_database


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("AUTH_SECRET", "cli-secret")
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", "sk_test_cli")
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    get_settings.cache_clear()
    structlog.reset_defaults()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


class TestParser:
    def test_create_admin_requires_email_and_name(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["create-admin", "--email", "ops@example.com"])

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_create_admin_prints_token(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "marketplace.db"

        main(["--db", str(path), "create-admin", "--email", "ops@example.com", "--name", "Ops"])

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("Created admin ")
        user_id = verify_token(lines[1], "cli-secret")
        db = open_database(path)
        row = db.conn.execute("SELECT role FROM profiles WHERE id = ?", (user_id,)).fetchone()
        db.close()
        assert row["role"] == "admin"

    def test_release_due_with_nothing_pending(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--db", str(tmp_path / "marketplace.db"), "release-due"])

        assert capsys.readouterr().out.strip() == "Released 0 escrow account(s)"

    def test_stdout_holds_only_command_output(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "marketplace.db"

        main(["--db", str(path), "create-admin", "--email", "ops@example.com", "--name", "Ops"])

        captured = capsys.readouterr()
        lines = captured.out.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("Created admin ")
        assert "user_registered" not in captured.out
