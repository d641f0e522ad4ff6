"""Copy strategies for entries that are neither regular files nor directories."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .filesystem import copy_fifo, copy_symlink
from .models import EntryDescriptor

CopyFunction = Callable[[Path, Path, EntryDescriptor], None]


@dataclass(frozen=True, slots=True)
class TypeHandler:
    """Pairs a file-type test on ``st_mode`` with the function that copies it."""

    name: str
    predicate: Callable[[int], bool]
    copy: CopyFunction

    def matches(self, descriptor: EntryDescriptor) -> bool:
        return bool(self.predicate(descriptor.mode))


SYMLINK_HANDLER = TypeHandler("symlink", stat.S_ISLNK, copy_symlink)
FIFO_HANDLER = TypeHandler("fifo", stat.S_ISFIFO, copy_fifo)

DEFAULT_HANDLERS: tuple[TypeHandler, ...] = (SYMLINK_HANDLER,)


def find_handler(handlers: Sequence[TypeHandler], descriptor: EntryDescriptor) -> TypeHandler | None:
    """Return the first handler whose predicate accepts ``descriptor``."""

    for handler in handlers:
        if handler.matches(descriptor):
            return handler
    return None


def with_handlers(*extra: TypeHandler, base: Iterable[TypeHandler] = DEFAULT_HANDLERS) -> tuple[TypeHandler, ...]:
    """Return ``base`` followed by ``extra``, dropping repeated handler names.

    An extra handler sharing a name with one in ``base`` replaces it in place.
    """

    ordered: dict[str, TypeHandler] = {handler.name: handler for handler in base}
    for handler in extra:
        ordered[handler.name] = handler
    return tuple(ordered.values())
