"""Core package for the treecopy project."""

from .cli import app, run
from .config import ConfigError, CopyPolicy, load_policy
from .copier import TreeCopier, copy
from .errors import (
    AttributeRestoreError,
    CopyIncompleteError,
    RestoreStepError,
    TreecopyError,
    UnsupportedTypeError,
)
from .handlers import DEFAULT_HANDLERS, FIFO_HANDLER, SYMLINK_HANDLER, TypeHandler, with_handlers
from .models import CopyReport, EntryDescriptor, EntryKind

__all__ = [
    "copy",
    "TreeCopier",
    "CopyPolicy",
    "ConfigError",
    "load_policy",
    "CopyReport",
    "EntryDescriptor",
    "EntryKind",
    "TypeHandler",
    "DEFAULT_HANDLERS",
    "FIFO_HANDLER",
    "SYMLINK_HANDLER",
    "with_handlers",
    "TreecopyError",
    "UnsupportedTypeError",
    "RestoreStepError",
    "AttributeRestoreError",
    "CopyIncompleteError",
    "app",
    "run",
]
