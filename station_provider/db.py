from __future__ import annotations

# station_provider/db.py
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .config import DEFAULT_TABLE, check_identifier, load_config
from .errors import DowngradeError, InvalidArgumentError
from .repository import station_repo

logger = logging.getLogger(__name__)

Seeder = Callable[[sqlite3.Connection, str], object]


def connect(path: str) -> sqlite3.Connection:
    """
    打开 SQLite 连接：自动提交模式（事务显式 BEGIN/COMMIT），row_factory 为 Row，
    允许跨线程共享，写入之间的串行化交给 SQLite 自身。
    """
    conn = sqlite3.connect(
        path,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    获取一次性 SQLite 连接。优先使用显式传入的 db_path，否则走 load_config()。
    """
    path = db_path or load_config().db_path
    conn = connect(path)
    try:
        yield conn
    finally:
        conn.close()


class StationDatabase:
    """
    Owns the single shared connection to the stations database.

    The connection is opened on first use. Opening compares the requested
    schema version with ``PRAGMA user_version``: a fresh file gets the table
    and its seed rows, an older version has the table dropped and rebuilt
    (all rows are lost), a newer one is refused.
    """

    def __init__(
        self,
        path: str,
        version: int,
        seeder: Optional[Seeder] = None,
        table: str = DEFAULT_TABLE,
    ):
        if int(version) < 1:
            raise InvalidArgumentError(f"Version must be >= 1, was {version}")
        self.path = path
        self.version = int(version)
        self.seeder = seeder
        self.table = check_identifier(table)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        # 共享连接上“执行 + 读取 lastrowid/rowcount”必须成对串行
        self._stmt_lock = threading.RLock()

    # ---- lifecycle ----
    def open(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                conn = connect(self.path)
                try:
                    self._prepare(conn)
                except Exception:
                    conn.close()
                    raise
                self._conn = conn
            return self._conn

    def get_writable_connection(self) -> sqlite3.Connection:
        return self.open()

    def get_readable_connection(self) -> sqlite3.Connection:
        return self.open()

    @contextmanager
    def locked(self) -> Iterator[sqlite3.Connection]:
        """Hold the shared connection for one statement and the read of its result."""
        conn = self.open()
        with self._stmt_lock:
            yield conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @staticmethod
    def stored_version(conn: sqlite3.Connection) -> int:
        return int(conn.execute("PRAGMA user_version").fetchone()[0])

    def _prepare(self, conn: sqlite3.Connection) -> None:
        old = self.stored_version(conn)
        if old == self.version:
            return
        if old > self.version:
            raise DowngradeError(old, self.version)

        conn.execute("BEGIN IMMEDIATE")
        try:
            if old == 0:
                self.on_create(conn)
            else:
                self.on_upgrade(conn, old, self.version)
            # PRAGMA 不支持参数绑定，version 已是 int
            conn.execute(f"PRAGMA user_version = {self.version}")
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def on_create(self, conn: sqlite3.Connection) -> None:
        station_repo.ensure_schema(conn, self.table)
        logger.info("created table %s in %s", self.table, self.path)
        if self.seeder is None:
            return
        conn.execute("SAVEPOINT seed_stations")
        try:
            self.seeder(conn, self.table)
        except Exception:
            logger.exception("failed to create stations")
            conn.execute("ROLLBACK TO SAVEPOINT seed_stations")
        conn.execute("RELEASE SAVEPOINT seed_stations")

    def on_upgrade(self, conn: sqlite3.Connection, old_version: int, new_version: int) -> None:
        logger.warning(
            "Upgrading database from version %s to %s, which will destroy all old data",
            old_version,
            new_version,
        )
        station_repo.drop_table(conn, self.table)
        self.on_create(conn)
