"""Fixtures for CLI interface tests."""

from __future__ import annotations

import json
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from worklinks.cli import cli


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a worklinks project in tmp_path and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init", "--prefix", "test"])
    assert result.exit_code == 0
    result = cli_runner.invoke(cli, ["member", "add", "ws-1", "cli"])
    assert result.exit_code == 0
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


def _extract_id(create_output: str) -> str:
    """Extract the id from 'Created test-abc123: ...' output."""
    return create_output.split(":")[0].replace("Created ", "").strip()


def _add_item(runner: CliRunner, title: str, *, project: str = "proj-1", workspace: str = "ws-1") -> str:
    result = runner.invoke(cli, ["item", "add", workspace, project, title, "--json"])
    assert result.exit_code == 0, result.output
    item_id: str = json.loads(result.output)["id"]
    return item_id
