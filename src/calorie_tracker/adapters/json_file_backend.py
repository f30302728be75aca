"""Key-value backend stored in a single JSON file."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from calorie_tracker.services.storage import ChangeTrackingBackend, StorageError


@dataclass
class JsonFileBackend(ChangeTrackingBackend):
    """Keeps every key in one JSON object on disk.

    The file is re-read on every call so that changes made by other processes
    are picked up. Writes go to a temporary file that replaces the original.
    """

    path: Path
    _seen: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            self._seen = self._load()
        except StorageError:
            self._seen = {}

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._dump(values)
        self._seen[key] = value

    def delete(self, key: str) -> None:
        values = self._load()
        if values.pop(key, None) is not None:
            self._dump(values)
        self._seen.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._load())

    def poll_changes(self) -> dict[str, str | None]:
        """Diff the file against what this instance last saw or wrote."""
        current = self._load()
        changes: dict[str, str | None] = {
            key: current.get(key)
            for key in sorted(current.keys() | self._seen.keys())
            if current.get(key) != self._seen.get(key)
        }
        self._seen = current
        return changes

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read {self.path}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not contain a JSON object")
        return {str(key): str(value) for key, value in data.items()}

    def _dump(self, values: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(values, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}") from exc
