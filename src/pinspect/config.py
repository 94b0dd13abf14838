"""Inspector configuration and persisted preferences."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .anchor import DEFAULT_ANCHOR_LENGTH, DEFAULT_SEARCH_RADIUS
from .transcode import Representation

logger = logging.getLogger(__name__)

CONFIG_ENV = "PINSPECT_CONFIG"
_DEFAULT_PATH = Path("~/.config/pinspect/prefs.json")


@dataclass(frozen=True)
class InspectorConfig:
    """Explicit inspector state, replaced (never mutated) on every change."""

    enabled: bool = False
    show_newlines: bool = True  # True → friendly view
    anchor_length: int = DEFAULT_ANCHOR_LENGTH
    search_radius: int = DEFAULT_SEARCH_RADIUS

    @property
    def representation(self) -> Representation:
        if self.show_newlines:
            return Representation.FRIENDLY
        return Representation.RAW

    def with_representation(self, rep: Representation) -> InspectorConfig:
        return replace(self, show_newlines=rep is Representation.FRIENDLY)

    def toggled_enabled(self) -> InspectorConfig:
        return replace(self, enabled=not self.enabled)


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env).expanduser()
    return _DEFAULT_PATH.expanduser()


class PreferenceStore:
    """JSON file holding the ``enabled`` and ``show_newlines`` flags."""

    _KEYS = ("enabled", "show_newlines")

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()

    def load(self, base: InspectorConfig | None = None) -> InspectorConfig:
        """Read preferences over *base*.  Missing or corrupt file → *base*."""
        config = base or InspectorConfig()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return config
        except OSError as exc:
            logger.warning("cannot read preferences %s: %s", self.path, exc)
            return config
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("ignoring corrupt preferences %s: %s", self.path, exc.msg)
            return config
        if not isinstance(data, dict):
            logger.warning("ignoring preferences %s: not an object", self.path)
            return config
        values = {k: data[k] for k in self._KEYS if isinstance(data.get(k), bool)}
        return replace(config, **values)

    def save(self, config: InspectorConfig) -> None:
        data = {k: getattr(config, k) for k in self._KEYS}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")
        except OSError as exc:
            logger.warning("cannot save preferences %s: %s", self.path, exc)
