from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable

from .models import ExportSettings


class SettingsStore:
    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ExportSettings:
        with self._lock:
            if not self._path.exists():
                return ExportSettings()

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                return ExportSettings()

            if not isinstance(raw, dict):
                return ExportSettings()

            return ExportSettings.from_persist_dict(raw)

    def save(self, settings: ExportSettings) -> None:
        payload = settings.to_persist_dict()

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self._path)

    def update(self, *, mutator: Callable[[ExportSettings], ExportSettings]) -> ExportSettings:
        with self._lock:
            current = self.load()
            updated = mutator(current)
            if not isinstance(updated, ExportSettings):
                raise TypeError("mutator must return ExportSettings")
            self.save(updated)
            return updated

    def set_value(self, *, key: str, value: Any) -> ExportSettings:
        def mutate(settings: ExportSettings) -> ExportSettings:
            if not hasattr(settings, key):
                raise KeyError(key)
            setattr(settings, key, value)
            return settings

        return self.update(mutator=mutate)
