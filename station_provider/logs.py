"""
Operation log: one row per mutating request against the stations database.

Rows live in ``operation_log`` next to the stations table, so a reset of the
stations schema (drop and recreate) keeps the history.
"""
from __future__ import annotations

import datetime as dt
import json
import time
import uuid
from typing import Any, Optional

from .db import get_conn

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""

_COLUMNS = (
    "ts", "user", "action", "entity_type", "entity_id", "request_id",
    "before_json", "after_json", "payload_json", "result", "err_msg", "latency_ms",
)
_INSERT_SQL = "INSERT INTO operation_log({}) VALUES({})".format(
    ",".join(_COLUMNS), ",".join(f":{c}" for c in _COLUMNS)
)


def ensure_log_schema(db_path: Optional[str] = None):
    with get_conn(db_path) as conn:
        conn.executescript(DDL)


def _dumps(obj: Any) -> Optional[str]:
    return None if obj is None else json.dumps(obj, ensure_ascii=False, default=str)


class LogContext:
    """Collects what one request did and writes it as a single log row."""

    def __init__(self, action: str, user: str = "owner", db_path: Optional[str] = None):
        self.action = action
        self.user = user
        self.db_path = db_path
        self.request_id = uuid.uuid4().hex
        self.started = time.perf_counter()
        self.entity_type: Optional[str] = None
        self.entity_id: Optional[str] = None
        self.before: Any = None
        self.after: Any = None
        self.payload: Any = None

    def set_entity(self, etype: str, eid: str):
        self.entity_type, self.entity_id = etype, str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def record(self, result: str, err: Optional[str]) -> dict:
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds"),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dumps(self.before),
            "after_json": _dumps(self.after),
            "payload_json": _dumps(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self.started) * 1000),
        }

    def write(self, result: str = "OK", err: Optional[str] = None):
        with get_conn(self.db_path) as conn:
            conn.execute(_INSERT_SQL, self.record(result, err))


def search_logs(
    q: Optional[str],
    action: Optional[str],
    ts_from: Optional[str],
    ts_to: Optional[str],
    page: int,
    size: int,
    db_path: Optional[str] = None,
):
    filters = {
        "(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q)": ("q", f"%{q}%" if q else None),
        "action = :action": ("action", action),
        "ts >= :ts_from": ("ts_from", ts_from),
        "ts <= :ts_to": ("ts_to", ts_to),
    }
    where, params = [], {}
    for clause, (key, value) in filters.items():
        if value:
            where.append(clause)
            params[key] = value
    wh = (" WHERE " + " AND ".join(where)) if where else ""
    page = max(int(page), 1)
    size = max(int(size), 1)
    with get_conn(db_path) as conn:
        total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": size, "offset": (page - 1) * size},
        ).fetchall()
    return total, [dict(r) for r in rows]
