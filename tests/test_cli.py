from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
from typer.testing import CliRunner

from treecopy.cli import app
from treecopy.config import DEFAULT_CONFIG_FILENAME, CopyPolicy, load_policy

runner = CliRunner()

needs_fifo = pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes unavailable")


def test_cli_copy_tree(source_tree: Path, tmp_path: Path) -> None:
    destination = tmp_path / "dest"

    result = runner.invoke(app, ["copy", str(source_tree), str(destination)])

    assert result.exit_code == 0
    assert "files" in result.stdout
    assert "Copied" in result.stdout
    assert (destination / "nested" / "deeper" / "empty").exists()
    assert os.readlink(destination / "dangling") == "missing/target"


def test_cli_copy_missing_source(tmp_path: Path) -> None:
    result = runner.invoke(app, ["copy", str(tmp_path / "missing"), str(tmp_path / "dest")])

    assert result.exit_code == 1
    assert "Errno" in result.stdout


@needs_fifo
def test_cli_unsupported_entry(tmp_path: Path) -> None:
    source = tmp_path / "src"
    source.mkdir()
    os.mkfifo(source / "pipe")

    failed = runner.invoke(app, ["copy", str(source), str(tmp_path / "strict")])
    assert failed.exit_code == 1
    assert "unsupported" in failed.stdout
    assert "--ignore-unsupported" in failed.stdout

    skipped = runner.invoke(app, ["copy", str(source), str(tmp_path / "lenient"), "--ignore-unsupported"])
    assert skipped.exit_code == 0
    assert "Skipped" in skipped.stdout
    assert not (tmp_path / "lenient" / "pipe").exists()

    piped = runner.invoke(app, ["copy", str(source), str(tmp_path / "piped"), "--fifo"])
    assert piped.exit_code == 0
    assert stat.S_ISFIFO((tmp_path / "piped" / "pipe").lstat().st_mode)


@pytest.mark.skipif(os.name != "posix", reason="POSIX ownership required")
def test_cli_reports_attribute_failures(source_tree: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(*_args, **_kwargs):
        raise PermissionError("Operation not permitted")

    monkeypatch.setattr("treecopy.filesystem.os.lchown", refuse)

    result = runner.invoke(app, ["copy", str(source_tree), str(tmp_path / "dest"), "--preserve-owner"])

    assert result.exit_code == 1
    assert "owner" in result.stdout
    assert "sudo" in result.stdout
    assert (tmp_path / "dest" / "top.txt").read_text() == "top level\n"


def test_cli_init_writes_policy(tmp_path: Path) -> None:
    config_path = tmp_path / "conf" / DEFAULT_CONFIG_FILENAME

    result = runner.invoke(app, ["init", "--config", str(config_path), "--archive"])

    assert result.exit_code == 0
    assert load_policy(config_path) == CopyPolicy.archive()

    again = runner.invoke(app, ["init", "--config", str(config_path)])
    assert again.exit_code == 1
    assert "already" in again.stdout

    forced = runner.invoke(app, ["init", "--config", str(config_path), "--force"])
    assert forced.exit_code == 0
    assert load_policy(config_path) == CopyPolicy()


def test_cli_bad_config(tmp_path: Path, source_tree: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    config_path.write_text("[policy]\nfollow_links = true\n")

    result = runner.invoke(app, ["copy", str(source_tree), str(tmp_path / "dest"), "--config", str(config_path)])

    assert result.exit_code == 1
    assert not (tmp_path / "dest").exists()


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions required")
def test_cli_short_preserve_permissions_flag(tmp_path: Path) -> None:
    source = tmp_path / "src"
    source.mkdir()
    (source / "file").write_text("x\n")
    source.chmod(0o700)

    result = runner.invoke(app, ["copy", str(source), str(tmp_path / "dest"), "-p"])

    assert result.exit_code == 0
    assert stat.S_IMODE((tmp_path / "dest").stat().st_mode) == 0o700


def test_cli_refuses_copy_into_itself(source_tree: Path) -> None:
    result = runner.invoke(app, ["copy", str(source_tree), str(source_tree / "inner")])

    assert result.exit_code == 1
    assert "itself" in result.stdout
    assert not (source_tree / "inner").exists()
