from __future__ import annotations

import re
from sqlite3 import Connection, Cursor
from typing import Iterable, Mapping, Optional, Sequence

from ..config import check_identifier
from ..errors import InvalidArgumentError

ID = "_id"
CODE = "code"
LAT = "lat"
LON = "lon"
LABEL = "label"

ALL_COLUMNS = (ID, CODE, LAT, LON, LABEL)
WRITABLE_COLUMNS = (CODE, LAT, LON, LABEL)
# SQLite INTEGER 上限，超出的 id 不可能存在
MAX_ROW_ID = 2 ** 63 - 1

DEFAULT_SORT_ORDER = f"{CODE} DESC"

CONTENT_TYPE = "vnd.android.cursor.dir/vnd.sofiapublictransport.station"
CONTENT_ITEM_TYPE = "vnd.android.cursor.item/vnd.sofiapublictransport.station"

_SORT_TERM_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(?:\s(ASC|DESC))?\s*$", re.IGNORECASE)
_QUOTES = {"'": "'", '"': '"', "`": "`", "[": "]"}


def ensure_schema(conn: Connection, table: str):
    check_identifier(table)
    conn.execute(
        f"""
        CREATE TABLE {table} (
            {ID} INTEGER PRIMARY KEY,
            {CODE} INTEGER,
            {LAT} FLOAT,
            {LON} FLOAT,
            {LABEL} VARCHAR(50)
        )
        """
    )


def drop_table(conn: Connection, table: str):
    check_identifier(table)
    conn.execute(f"DROP TABLE IF EXISTS {table}")


def project(columns: Optional[Iterable[str]]) -> list[str]:
    """Keep only known columns, in the requested order; all of them when nothing survives."""
    if not columns:
        return list(ALL_COLUMNS)
    out: list[str] = []
    for c in columns:
        if c in ALL_COLUMNS and c not in out:
            out.append(c)
    return out or list(ALL_COLUMNS)


def order_by(sort_order: Optional[str]) -> str:
    if not sort_order or not sort_order.strip():
        return DEFAULT_SORT_ORDER
    terms = []
    for raw in sort_order.split(","):
        m = _SORT_TERM_RE.match(raw)
        if not m or m.group(1) not in ALL_COLUMNS:
            raise InvalidArgumentError(f"invalid sort term: {raw.strip()!r}")
        direction = (m.group(2) or "ASC").upper()
        terms.append(f"{m.group(1)} {direction}")
    return ", ".join(terms)


def check_values(values: Optional[Mapping[str, object]]) -> dict:
    if not values:
        raise InvalidArgumentError("Values should not be empty")
    bad = [k for k in values if k not in WRITABLE_COLUMNS]
    if bad:
        raise InvalidArgumentError(f"Invalid column(s): {', '.join(map(str, bad))}")
    return dict(values)


def check_selection(selection: Optional[str]) -> Optional[str]:
    """
    Reject caller filters that could leave their own parentheses.

    Parentheses must balance outside string literals, literals must be
    closed, and statement separators or comments are not allowed.
    """
    if selection is None:
        return None
    depth = 0
    quote = None
    i = 0
    n = len(selection)
    while i < n:
        ch = selection[i]
        if quote:
            if ch == quote:
                # '' / "" 为转义的引号
                if quote != "]" and i + 1 < n and selection[i + 1] == quote:
                    i += 2
                    continue
                quote = None
        elif ch in _QUOTES:
            quote = _QUOTES[ch]
        elif ch == ";" or selection.startswith("--", i) or selection.startswith("/*", i):
            raise InvalidArgumentError(f"invalid selection: {selection!r}")
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise InvalidArgumentError(f"unbalanced parentheses in selection: {selection!r}")
        i += 1
    if quote or depth != 0:
        raise InvalidArgumentError(f"unbalanced selection: {selection!r}")
    return selection


def _where(selection: Optional[str]) -> str:
    return f" WHERE ({selection})" if selection and selection.strip() else ""


def select(
    conn: Connection,
    table: str,
    columns: Sequence[str],
    selection: Optional[str],
    selection_args: Sequence,
    sort_order: str,
    limit: int,
) -> Cursor:
    sql = f"SELECT {', '.join(columns)} FROM {table}{_where(selection)} ORDER BY {sort_order} LIMIT ?"
    return conn.execute(sql, [*selection_args, int(limit)])


def insert(conn: Connection, table: str, values: Mapping[str, object]) -> Optional[int]:
    vals = check_values(values)
    cols = list(vals)
    sql = f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({','.join(['?'] * len(cols))})"
    cur = conn.execute(sql, [vals[c] for c in cols])
    return cur.lastrowid


def update(
    conn: Connection,
    table: str,
    values: Mapping[str, object],
    selection: Optional[str],
    selection_args: Sequence,
) -> int:
    vals = check_values(values)
    cols = list(vals)
    sets = ", ".join(f"{c}=?" for c in cols)
    sql = f"UPDATE {table} SET {sets}{_where(selection)}"
    cur = conn.execute(sql, [*(vals[c] for c in cols), *selection_args])
    return cur.rowcount


def delete(conn: Connection, table: str, selection: Optional[str], selection_args: Sequence) -> int:
    # WHERE 1 keeps the affected-row count exact when deleting everything
    where = _where(selection) or " WHERE 1"
    cur = conn.execute(f"DELETE FROM {table}{where}", list(selection_args))
    return cur.rowcount


def count(conn: Connection, table: str) -> int:
    row = conn.execute(f"SELECT COUNT(1) AS cnt FROM {table}").fetchone()
    return int(row[0])


def insert_many(conn: Connection, table: str, rows: Iterable[Mapping[str, object]]) -> int:
    n = 0
    for r in rows:
        insert(conn, table, r)
        n += 1
    return n
