"""Tests for ordered_publish.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from conftest import WorkspaceFactory, member
from ordered_publish.cli import cli
from ordered_publish.errors import CircularDependencyError, PublishError


@patch("ordered_publish.cli.run_publish")
def test_path_defaults_to_current_directory(mock_run_publish: MagicMock) -> None:
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 0
    mock_run_publish.assert_called_once_with(Path("."), dry_run=False)


@patch("ordered_publish.cli.run_publish")
def test_passes_path_and_dry_run(mock_run_publish: MagicMock, tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, [str(tmp_path), "--dry-run"])

    assert result.exit_code == 0
    mock_run_publish.assert_called_once_with(tmp_path, dry_run=True)


@patch("ordered_publish.cli.run_publish")
def test_cycle_reported_as_error(mock_run_publish: MagicMock) -> None:
    mock_run_publish.side_effect = CircularDependencyError("b", "a")

    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 1
    assert "Error: Dependency cycle detected: a -> b" in result.output


@patch("ordered_publish.cli.run_publish")
def test_publish_failure_reported_as_error(mock_run_publish: MagicMock) -> None:
    mock_run_publish.side_effect = PublishError("core", "Failed to publish core")

    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 1
    assert "Failed to publish core" in result.output


def test_missing_project_root(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, [str(tmp_path / "missing")])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_dry_run_end_to_end(make_workspace: WorkspaceFactory) -> None:
    root = make_workspace(
        {"packages/a": member("a", deps=["b"]), "packages/b": member("b")}
    )

    with patch("ordered_publish.pipeline.run") as mock_run:
        result = CliRunner().invoke(cli, [str(root), "--dry-run"])

    assert result.exit_code == 0, result.output
    mock_run.assert_not_called()
    assert "1. b" in result.output
    assert "2. a" in result.output
