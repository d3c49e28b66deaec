"""Per-type daily notification caps.

A static table with an explicit default for unlisted types.  The
built-in table can be replaced by a YAML file::

    default: 5
    caps:
      battle_card: 1
      pipeline_alert: 3
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from steward.core.errors import ConfigurationError

DEFAULT_CAPS: dict[str, int] = {
    "battle_card": 1,
    "pipeline_alert": 3,
    "stale_deal": 2,
    "api_error": 5,
    "system": 10,
}

DEFAULT_CAP = 5


class RateCapTable:
    """Immutable mapping ``type → daily cap``.

    Args:
        caps:    Explicit caps per notification type.
        default: Cap for types not in *caps*.
        strict:  Raise ``ConfigurationError`` for unlisted types instead
                 of falling back to *default*.
    """

    def __init__(
        self,
        caps: Mapping[str, int] | None = None,
        default: int = DEFAULT_CAP,
        strict: bool = False,
    ) -> None:
        table = dict(DEFAULT_CAPS if caps is None else caps)
        for name, cap in table.items():
            _check_cap(name, cap)
        _check_cap("default", default)
        self._caps = table
        self.default = default
        self.strict = strict

    def cap_for(self, notification_type: str) -> int:
        if notification_type in self._caps:
            return self._caps[notification_type]
        if self.strict:
            raise ConfigurationError(f"No rate cap configured for notification type '{notification_type}'")
        return self.default

    def as_dict(self) -> dict[str, int]:
        return dict(self._caps)

    @classmethod
    def from_yaml(cls, path: str | Path, default: int = DEFAULT_CAP, strict: bool = False) -> RateCapTable:
        """Load a cap table from *path*.

        Raises:
            FileNotFoundError: If the YAML file does not exist.
            ValueError: If the YAML is invalid or the caps are malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Rate cap config not found: {path}")

        raw = path.read_text(encoding="utf-8")
        try:
            data: Any = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

        if not isinstance(data, dict) or "caps" not in data:
            raise ValueError(f"YAML must contain a top-level 'caps' key in {path}")

        caps = data["caps"] or {}
        if not isinstance(caps, dict):
            raise ValueError(f"'caps' must be a mapping of type → int in {path}")

        return cls(caps=caps, default=data.get("default", default), strict=strict)


def _check_cap(name: str, cap: Any) -> None:
    if isinstance(cap, bool) or not isinstance(cap, int) or cap < 0:
        raise ValueError(f"Rate cap for '{name}' must be a non-negative integer, got {cap!r}")
