"""Recursive copy engine."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from .config import CopyPolicy
from .errors import AttributeRestoreError, CopyIncompleteError, TreecopyError, UnsupportedTypeError
from .filesystem import DIRECTORY_MODE, copy_file, list_directory, restore_attributes, writable_directory
from .handlers import DEFAULT_HANDLERS, TypeHandler, find_handler
from .models import CopyReport, EntryDescriptor, EntryKind

logger = logging.getLogger(__name__)


class TreeCopier:
    """Copies files, directory trees and symlinks according to a ``CopyPolicy``.

    Instances hold no per-copy state, so one copier can serve several
    copies, including concurrent ones.
    """

    def __init__(
        self,
        policy: CopyPolicy | None = None,
        handlers: Iterable[TypeHandler] = DEFAULT_HANDLERS,
    ) -> None:
        self.policy = policy or CopyPolicy()
        self.handlers: tuple[TypeHandler, ...] = tuple(handlers)

    def copy(
        self,
        source: Path | str | os.PathLike[str],
        destination: Path | str | os.PathLike[str],
    ) -> CopyReport:
        """Copy ``source`` to ``destination``, whatever kind of entry it is.

        A symlink at ``source`` is copied as a link, never followed. Content
        errors propagate immediately; attribute failures are gathered for the
        whole tree and raised afterwards as ``CopyIncompleteError``.
        """

        source = Path(source)
        destination = Path(destination)
        source_stat = source.lstat()
        descriptor = EntryDescriptor.from_stat(source_stat)
        _check_overlap(source, destination, source_stat, descriptor)
        report = CopyReport(source=source, destination=destination)

        try:
            self._dispatch(source, destination, descriptor, report)
        except UnsupportedTypeError as exc:
            if not self.policy.ignore_unsupported_types:
                raise
            self._skip(exc, report)

        if report.failures:
            raise CopyIncompleteError(report)
        return report

    # ------------------------------------------------------------------
    # Internal helpers

    def _dispatch(self, source: Path, destination: Path, descriptor: EntryDescriptor, report: CopyReport) -> None:
        if descriptor.kind is EntryKind.FILE:
            report.bytes_copied += copy_file(source, destination, descriptor)
        elif descriptor.kind is EntryKind.DIRECTORY:
            self._copy_directory(source, destination, descriptor, report)
        else:
            handler = find_handler(self.handlers, descriptor)
            if handler is None:
                raise UnsupportedTypeError(descriptor.mode, source)
            handler.copy(source, destination, descriptor)

        report.record(descriptor.kind)
        logger.debug("copied %s %s -> %s", descriptor.kind.value, source, destination)

        try:
            restore_attributes(destination, descriptor, self.policy)
        except AttributeRestoreError as exc:
            report.failures.append(exc)

    def _copy_directory(self, source: Path, destination: Path, descriptor: EntryDescriptor, report: CopyReport) -> None:
        final_mode = descriptor.permissions if self.policy.preserve_permissions else DIRECTORY_MODE

        with writable_directory(destination, final_mode):
            for child_source, child_descriptor in list_directory(source):
                child_destination = destination / child_source.name
                try:
                    self._dispatch(child_source, child_destination, child_descriptor, report)
                except UnsupportedTypeError as exc:
                    if not self.policy.ignore_unsupported_types:
                        raise
                    self._skip(exc, report)

    @staticmethod
    def _skip(exc: UnsupportedTypeError, report: CopyReport) -> None:
        report.skipped.append(exc.path)
        logger.warning("skipping %s", exc)


def _check_overlap(source: Path, destination: Path, source_stat: os.stat_result, descriptor: EntryDescriptor) -> None:
    """Refuse copies that would overwrite the source or walk into their own output."""

    # Regular files are opened for writing, which follows a symlinked destination.
    lookups = [destination.lstat]
    if descriptor.kind is EntryKind.FILE:
        lookups.append(destination.stat)

    for lookup in lookups:
        try:
            destination_stat = lookup()
        except (FileNotFoundError, NotADirectoryError):
            continue
        if os.path.samestat(source_stat, destination_stat):
            raise TreecopyError(f"source and destination are the same file: {source}")

    if descriptor.kind is EntryKind.DIRECTORY:
        source_resolved = source.resolve(strict=False)
        destination_resolved = destination.resolve(strict=False)
        if destination_resolved == source_resolved or source_resolved in destination_resolved.parents:
            raise TreecopyError(f"cannot copy directory '{source}' into itself at '{destination}'")


def copy(
    source: Path | str | os.PathLike[str],
    destination: Path | str | os.PathLike[str],
    *,
    policy: CopyPolicy | None = None,
    handlers: Iterable[TypeHandler] = DEFAULT_HANDLERS,
) -> CopyReport:
    """Copy ``source`` to ``destination`` with a one-off ``TreeCopier``."""

    return TreeCopier(policy, handlers).copy(source, destination)
