from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    root = tmp_path / "source"
    (root / "nested" / "deeper").mkdir(parents=True)
    (root / "top.txt").write_text("top level\n")
    (root / "nested" / "data.bin").write_bytes(bytes(range(256)) * 64)
    (root / "nested" / "deeper" / "empty").write_bytes(b"")
    (root / "nested" / "link-to-top").symlink_to("../top.txt")
    (root / "dangling").symlink_to("missing/target")
    return root


@pytest.fixture
def snapshot_tree() -> Callable[[Path], dict[str, tuple[str, object]]]:
    def snapshot(root: Path) -> dict[str, tuple[str, object]]:
        entries: dict[str, tuple[str, object]] = {}
        for dirpath, dirnames, filenames in os.walk(root):
            base = Path(dirpath)
            for name in dirnames + filenames:
                path = base / name
                rel = path.relative_to(root).as_posix()
                if path.is_symlink():
                    entries[rel] = ("symlink", os.readlink(path))
                elif path.is_dir():
                    entries[rel] = ("directory", None)
                elif path.is_file():
                    entries[rel] = ("file", path.read_bytes())
                else:
                    entries[rel] = ("other", None)
        return entries

    return snapshot
