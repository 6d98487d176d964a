from __future__ import annotations

import sqlite3
from typing import Any, Callable, Iterator, List, Optional, Sequence

from .notifier import ChangeNotifier


class StationCursor:
    """
    Materialized query result positioned before the first row.

    The cursor can be bound to a locator with ``set_notification_uri``;
    observers registered through ``register_content_observer`` are then
    called whenever a change is published for that locator (or anything
    below it).
    """

    def __init__(self, columns: Sequence[str], rows: Sequence[sqlite3.Row]):
        self.columns: List[str] = list(columns)
        self._rows: List[tuple] = [tuple(r) for r in rows]
        self._pos = -1
        self._notifier: Optional[ChangeNotifier] = None
        self._notification_uri: Optional[str] = None
        self._handles: List[int] = []
        self.closed = False

    # ---- position ----
    @property
    def count(self) -> int:
        return len(self._rows)

    @property
    def position(self) -> int:
        return self._pos

    def move_to_next(self) -> bool:
        if self._pos < len(self._rows):
            self._pos += 1
        return self._pos < len(self._rows)

    def move_to_first(self) -> bool:
        self._pos = 0
        return bool(self._rows)

    def move_to_position(self, pos: int) -> bool:
        if pos < -1 or pos > len(self._rows):
            return False
        self._pos = pos
        return 0 <= pos < len(self._rows)

    # ---- values ----
    def column_index(self, name: str) -> int:
        try:
            return self.columns.index(name)
        except ValueError:
            raise KeyError(name) from None

    def _current(self) -> tuple:
        if not 0 <= self._pos < len(self._rows):
            raise IndexError(f"cursor position {self._pos} out of range (count={len(self._rows)})")
        return self._rows[self._pos]

    def get(self, column: str) -> Any:
        return self._current()[self.column_index(column)]

    def get_int(self, column: str) -> Optional[int]:
        v = self.get(column)
        return None if v is None else int(v)

    def get_float(self, column: str) -> Optional[float]:
        v = self.get(column)
        return None if v is None else float(v)

    def get_str(self, column: str) -> Optional[str]:
        v = self.get(column)
        return None if v is None else str(v)

    def row_dict(self) -> dict:
        return dict(zip(self.columns, self._current()))

    def to_dicts(self) -> list[dict]:
        return [dict(zip(self.columns, r)) for r in self._rows]

    def __iter__(self) -> Iterator[dict]:
        # iterating walks from the current position to the end
        while self.move_to_next():
            yield self.row_dict()

    def __len__(self) -> int:
        return len(self._rows)

    # ---- notification ----
    @property
    def notification_uri(self) -> Optional[str]:
        return self._notification_uri

    def set_notification_uri(self, notifier: ChangeNotifier, uri: str) -> None:
        self._notifier = notifier
        self._notification_uri = uri

    def register_content_observer(self, callback: Callable[[str], None]) -> int:
        if self._notifier is None or self._notification_uri is None:
            raise RuntimeError("cursor has no notification uri")
        h = self._notifier.register_observer(self._notification_uri, callback, notify_for_descendants=True)
        self._handles.append(h)
        return h

    def close(self) -> None:
        if self._notifier is not None:
            for h in self._handles:
                self._notifier.unregister_observer(h)
        self._handles.clear()
        self.closed = True

    def __enter__(self) -> "StationCursor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
