"""Run counters.

Every phase receives an `ImportReport` and increments counters on it; the
orchestrator merges phase reports into the persisted run report.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ImportReport:
    """Explicit counter accumulator (key -> number or value)."""

    counters: dict[str, Any] = field(default_factory=dict)

    def inc(self, key: str, n: int = 1) -> None:
        self.counters[key] = self.counters.get(key, 0) + n

    def set(self, key: str, value: Any) -> None:
        self.counters[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.counters.get(key, default)

    def merge(self, other: "ImportReport") -> "ImportReport":
        """Fold another report into this one.

        Numeric counters are summed; other values are overwritten.
        """
        for key, value in other.counters.items():
            current = self.counters.get(key)
            if isinstance(current, (int, float)) and isinstance(value, (int, float)) and not isinstance(value, bool):
                self.counters[key] = current + value
            else:
                self.counters[key] = value
        return self

    def as_dict(self) -> dict[str, Any]:
        """Counters sorted by key."""
        return dict(sorted(self.counters.items()))
