"""Tests for the relay CLI."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from discord_relay.audit.logger import AuditLogger
from discord_relay.cli import cli
from discord_relay.models import AuditEvent, AuditEventType, RiskLevel


def _write_log(path: Path, count: int = 3) -> None:
    logger = AuditLogger(log_path=str(path))
    for i in range(count):
        logger.log(AuditEvent(
            event_type=AuditEventType.RELAY_SENT,
            action=f"relay-{i}",
            result="sent",
            risk_level=RiskLevel.INFO,
        ))


def test_verify_audit_intact(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    _write_log(log_file)
    result = CliRunner().invoke(cli, ["verify-audit", str(log_file)])
    assert result.exit_code == 0
    assert "chain intact" in result.output


def test_verify_audit_broken(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    _write_log(log_file)
    lines = log_file.read_text().splitlines()
    log_file.write_text("\n".join([lines[0], lines[2]]) + "\n")
    result = CliRunner().invoke(cli, ["verify-audit", str(log_file)])
    assert result.exit_code == 1
    assert "line 2" in result.output


def test_verify_audit_missing_file(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["verify-audit", str(tmp_path / "nope.jsonl")])
    assert result.exit_code != 0


def test_serve_runs_uvicorn_factory() -> None:
    with patch("discord_relay.cli.uvicorn.run") as mock_run:
        result = CliRunner().invoke(cli, ["serve", "--port", "4321"])
    assert result.exit_code == 0
    mock_run.assert_called_once()
    args, kwargs = mock_run.call_args
    assert args[0] == "discord_relay.api.app:create_app_from_env"
    assert kwargs["factory"] is True
    assert kwargs["port"] == 4321


def test_serve_port_defaults_to_env() -> None:
    with patch("discord_relay.cli.uvicorn.run") as mock_run:
        result = CliRunner().invoke(cli, ["serve"], env={"PORT": "5050"})
    assert result.exit_code == 0
    assert mock_run.call_args.kwargs["port"] == 5050
