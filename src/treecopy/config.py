"""Copy policy and its TOML configuration file."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

DEFAULT_CONFIG_FILENAME = "treecopy.toml"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


class CopyPolicy(BaseModel):
    """Switches that control what a copy carries over besides content."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore_unsupported_types: bool = False
    preserve_permissions: bool = False
    preserve_owner: bool = False
    preserve_time: bool = False

    @classmethod
    def archive(cls, *, ignore_unsupported_types: bool = False) -> "CopyPolicy":
        """Return a policy that preserves permissions, owner and times."""

        return cls(
            ignore_unsupported_types=ignore_unsupported_types,
            preserve_permissions=True,
            preserve_owner=True,
            preserve_time=True,
        )

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "CopyPolicy":
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            raise ConfigError(f"Invalid [policy] table: {exc}") from exc

    def merged(self, **overrides: bool | None) -> "CopyPolicy":
        """Return a copy with every non-``None`` override applied."""

        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise ConfigError(f"Unknown policy option(s): {', '.join(sorted(unknown))}")
        update = {key: value for key, value in overrides.items() if value is not None}
        if not update:
            return self
        return self.model_copy(update=update)


def load_policy(path: Path | str | os.PathLike[str] | None = None) -> CopyPolicy:
    """Load a ``CopyPolicy`` from a TOML file.

    Args:
        path: Optional path to the TOML file, or a directory containing
            ``treecopy.toml``. Defaults to ``treecopy.toml`` in the current
            working directory.
    """

    config_path = _resolve_config_path(path)

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    policy_section = data.get("policy", {})
    if not isinstance(policy_section, Mapping):
        raise ConfigError("The 'policy' entry must be a table")

    return CopyPolicy.from_raw(policy_section)


def _resolve_config_path(path: Path | str | os.PathLike[str] | None) -> Path:
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path).expanduser()

    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
