"""In-process key-value backend."""

from dataclasses import dataclass, field

from calorie_tracker.services.storage import KeyValueBackend


@dataclass
class InMemoryBackend(KeyValueBackend):
    """Dictionary-backed storage; contents are lost when the process exits."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.values)
