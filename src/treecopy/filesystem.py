"""Filesystem primitives used by the copy engine."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import CopyPolicy
from .errors import AttributeRestoreError, RestoreStepError
from .models import EntryDescriptor, EntryKind

logger = logging.getLogger(__name__)

# Mode for directories while their contents are copied.
DIRECTORY_MODE = 0o755
CHUNK_SIZE = 1024 * 1024


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, destination: Path, descriptor: EntryDescriptor) -> int:
    """Copy the bytes of a regular file and return how many were written.

    The destination takes the source permission bits as soon as it is
    created; the open handle stays writable whatever those bits are.
    """

    ensure_parent(destination)

    written = 0
    with destination.open("wb") as target:
        os.chmod(destination, descriptor.permissions)
        with source.open("rb") as handle:
            for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
                target.write(chunk)
                written += len(chunk)

    return written


def copy_symlink(source: Path, destination: Path, descriptor: EntryDescriptor) -> None:
    """Recreate ``source`` symlink at ``destination`` with the same target string."""

    target = os.readlink(source)
    os.symlink(target, destination)


def copy_fifo(source: Path, destination: Path, descriptor: EntryDescriptor) -> None:
    """Create a new named pipe at ``destination``; pipe contents are never read."""

    os.mkfifo(destination, descriptor.permissions)


def list_directory(path: Path) -> list[tuple[Path, EntryDescriptor]]:
    """Return the immediate children of ``path`` sorted by name."""

    with os.scandir(path) as entries:
        children = [
            (Path(entry.path), EntryDescriptor.from_stat(entry.stat(follow_symlinks=False))) for entry in entries
        ]
    children.sort(key=lambda item: item[0].name)
    return children


@contextmanager
def writable_directory(path: Path, final_mode: int) -> Iterator[Path]:
    """Create ``path`` with ``DIRECTORY_MODE`` and settle it to ``final_mode`` on exit."""

    path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
    # mkdir honours the umask and leaves an existing directory untouched.
    os.chmod(path, DIRECTORY_MODE)
    try:
        yield path
    except BaseException:
        try:
            os.chmod(path, final_mode)
        except OSError:
            logger.warning("could not settle mode %o of %s", final_mode, path, exc_info=True)
        raise
    os.chmod(path, final_mode)


def restore_attributes(destination: Path, descriptor: EntryDescriptor, policy: CopyPolicy) -> None:
    """Apply the metadata switched on in ``policy`` to ``destination``.

    Every enabled step runs even if an earlier one failed. Failures are
    collected and raised together as ``AttributeRestoreError``.
    """

    errors: list[RestoreStepError] = []
    is_link = descriptor.kind is EntryKind.SYMLINK

    # Ownership first: lchown clears the setuid and setgid bits.
    if policy.preserve_owner:
        if descriptor.uid is None or descriptor.gid is None or not hasattr(os, "lchown"):
            errors.append(
                RestoreStepError("owner", destination, f"could not restore owner for file {destination}: no platform data")
            )
        else:
            try:
                os.lchown(destination, descriptor.uid, descriptor.gid)
            except OSError as exc:
                errors.append(
                    RestoreStepError(
                        "owner",
                        destination,
                        f"could not restore owner {descriptor.uid}:{descriptor.gid} for file {destination}",
                        exc,
                    )
                )

    if policy.preserve_permissions:
        try:
            _restore_permissions(destination, descriptor, is_link=is_link)
        except OSError as exc:
            errors.append(
                RestoreStepError(
                    "permissions",
                    destination,
                    f"could not restore permissions '{descriptor.mode_string}' for file {destination}",
                    exc,
                )
            )

    if policy.preserve_time:
        if descriptor.atime_ns is None:
            errors.append(
                RestoreStepError("time", destination, f"could not restore timestamp for file {destination}: no platform data")
            )
        else:
            try:
                _restore_times(destination, descriptor.atime_ns, descriptor.mtime_ns, is_link=is_link)
            except (OSError, NotImplementedError) as exc:
                errors.append(
                    RestoreStepError(
                        "time",
                        destination,
                        f"could not restore timestamp '{descriptor.mtime_ns}' for file {destination}",
                        exc,
                    )
                )

    if errors:
        for error in errors:
            logger.warning("%s", error)
        raise AttributeRestoreError(destination, errors)


def _restore_permissions(destination: Path, descriptor: EntryDescriptor, *, is_link: bool) -> None:
    if not is_link:
        os.chmod(destination, descriptor.permissions)
        return
    # Link modes are only settable where chmod can skip dereferencing.
    if os.chmod in os.supports_follow_symlinks:
        os.chmod(destination, descriptor.permissions, follow_symlinks=False)


def _restore_times(destination: Path, atime_ns: int, mtime_ns: int, *, is_link: bool) -> None:
    times = (atime_ns, mtime_ns)
    if is_link:
        if os.utime not in os.supports_follow_symlinks:
            raise NotImplementedError("this platform cannot set symlink timestamps")
        os.utime(destination, ns=times, follow_symlinks=False)
        return
    os.utime(destination, ns=times)
