"""Shared models and enums for treecopy."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import AttributeRestoreError


class EntryKind(str, Enum):
    """Kinds of filesystem entries the copier distinguishes."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"

    @classmethod
    def from_mode(cls, mode: int) -> "EntryKind":
        if stat.S_ISREG(mode):
            return cls.FILE
        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class EntryDescriptor:
    """Metadata snapshot of one source entry, taken without following links."""

    kind: EntryKind
    mode: int
    size: int
    mtime_ns: int
    atime_ns: int | None = None
    uid: int | None = None
    gid: int | None = None

    @property
    def permissions(self) -> int:
        return stat.S_IMODE(self.mode)

    @property
    def mode_string(self) -> str:
        return stat.filemode(self.mode)

    @classmethod
    def from_stat(cls, stat_result: os.stat_result) -> "EntryDescriptor":
        has_owner = os.name == "posix"
        return cls(
            kind=EntryKind.from_mode(stat_result.st_mode),
            mode=stat_result.st_mode,
            size=stat_result.st_size,
            mtime_ns=stat_result.st_mtime_ns,
            atime_ns=getattr(stat_result, "st_atime_ns", None),
            uid=stat_result.st_uid if has_owner else None,
            gid=stat_result.st_gid if has_owner else None,
        )

    @classmethod
    def from_path(cls, path: Path) -> "EntryDescriptor":
        """Snapshot ``path`` with ``lstat`` so a symlink describes itself."""

        return cls.from_stat(path.lstat())


@dataclass(slots=True)
class CopyReport:
    """Running totals for a single copy operation."""

    source: Path
    destination: Path
    files: int = 0
    directories: int = 0
    symlinks: int = 0
    special: int = 0
    bytes_copied: int = 0
    skipped: list[Path] = field(default_factory=list)
    failures: list["AttributeRestoreError"] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def entries_copied(self) -> int:
        return self.files + self.directories + self.symlinks + self.special

    def record(self, kind: EntryKind) -> None:
        if kind is EntryKind.FILE:
            self.files += 1
        elif kind is EntryKind.DIRECTORY:
            self.directories += 1
        elif kind is EntryKind.SYMLINK:
            self.symlinks += 1
        else:
            self.special += 1
