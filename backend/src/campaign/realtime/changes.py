"""Row-level change events and the reducer that applies them to local collections."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable


class ChangeEvent(str, Enum):
    """Row change kinds."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RowChange:
    """A single committed row change.

    ``new`` is the full row after the change (empty for DELETE). ``old``
    carries at least the primary key for UPDATE and DELETE.
    """
    event: ChangeEvent
    table: str
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)
    committed_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def key(self, key: str = "id") -> Any:
        """Primary key of the affected row."""
        if key in self.new:
            return self.new[key]
        return self.old.get(key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.value,
            "table": self.table,
            "new": self.new,
            "old": self.old,
            "committed_at": self.committed_at,
        }


def apply_change(
    rows: Iterable[dict[str, Any]],
    change: RowChange,
    key: str = "id",
) -> list[dict[str, Any]]:
    """Apply one change to a list of rows and return the new list.

    INSERT appends the row, or replaces it when the key is already present.
    UPDATE replaces the matching row, or appends it when absent.
    DELETE drops the matching row. Last write wins.
    """
    rows = list(rows)
    target = change.key(key)
    index = next((i for i, row in enumerate(rows) if row.get(key) == target), None)

    if change.event is ChangeEvent.DELETE:
        if index is not None:
            del rows[index]
        return rows

    if index is None:
        rows.append(dict(change.new))
    else:
        rows[index] = dict(change.new)
    return rows


class LiveCollection:
    """A locally held snapshot of one table kept in sync by row changes.

    Changes for other tables are ignored. ``items()`` returns the rows
    sorted by ``sort_key`` and truncated to ``limit``; the full set is
    retained so that rows moving into the window are not lost.
    """

    def __init__(
        self,
        table: str,
        rows: Iterable[dict[str, Any]] = (),
        sort_key: Callable[[dict[str, Any]], Any] | None = None,
        reverse: bool = False,
        limit: int | None = None,
        key: str = "id",
    ):
        self.table = table
        self.sort_key = sort_key
        self.reverse = reverse
        self.limit = limit
        self.key = key
        self._rows: list[dict[str, Any]] = [dict(row) for row in rows]

    def __len__(self) -> int:
        return len(self._rows)

    def apply(self, change: RowChange) -> bool:
        """Apply a change; returns True when it targeted this table."""
        if change.table != self.table:
            return False
        self._rows = apply_change(self._rows, change, key=self.key)
        return True

    def items(self) -> list[dict[str, Any]]:
        rows = list(self._rows)
        if self.sort_key is not None:
            rows.sort(key=self.sort_key, reverse=self.reverse)
        if self.limit is not None:
            rows = rows[: self.limit]
        return rows

    def get(self, value: Any) -> dict[str, Any] | None:
        return next((row for row in self._rows if row.get(self.key) == value), None)
