"""Exception types raised by treecopy."""

from __future__ import annotations

import stat
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import CopyReport


class TreecopyError(RuntimeError):
    """Base class for errors raised by the copy engine."""


class UnsupportedTypeError(TreecopyError):
    """Raised when no handler knows how to copy an entry's file type."""

    def __init__(self, mode: int, path: Path) -> None:
        self.mode = mode
        self.path = Path(path)
        super().__init__(f"unsupported mode '{stat.filemode(mode)}' for file {self.path}")


class RestoreStepError(TreecopyError):
    """A single attribute (permissions, owner or time) could not be restored."""

    def __init__(self, step: str, path: Path, message: str, cause: BaseException | None = None) -> None:
        self.step = step
        self.path = Path(path)
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.__cause__ = cause


class AttributeRestoreError(TreecopyError):
    """Collects every attribute step that failed for one destination entry."""

    def __init__(self, path: Path, errors: Sequence[RestoreStepError]) -> None:
        self.path = Path(path)
        self.errors = tuple(errors)
        super().__init__(f"some tasks after the copy of file {self.path} could not be achieved")

    @property
    def steps(self) -> tuple[str, ...]:
        return tuple(error.step for error in self.errors)

    def details(self) -> str:
        return "; ".join(str(error) for error in self.errors)


class CopyIncompleteError(TreecopyError):
    """Raised once a copy finished its content but some attributes were not restored."""

    def __init__(self, report: "CopyReport") -> None:
        self.report = report
        count = len(report.failures)
        noun = "entry" if count == 1 else "entries"
        super().__init__(
            f"copied '{report.source}' to '{report.destination}' but could not restore attributes of {count} {noun}"
        )

    @property
    def failures(self) -> tuple[AttributeRestoreError, ...]:
        return tuple(self.report.failures)
