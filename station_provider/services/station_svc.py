"""
站点数据访问服务
把内容定位符（content://<authority>/stations[/<id>]）上的请求翻译成 SQL：
查询、插入、更新、删除，并在写入后发布变更通知。
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..config import ProviderConfig
from ..cursor import StationCursor
from ..db import StationDatabase
from ..errors import InsertFailedError, InvalidArgumentError, UnknownUriError
from ..notifier import ChangeNotifier
from ..repository import station_repo
from ..uris import STATION_ID, STATIONS, UriMatcher, parse_id, with_appended_id
from .seed_svc import CsvStationSeeder

logger = logging.getLogger(__name__)


class StationProvider:
    """站点内容提供者"""

    def __init__(
        self,
        database: StationDatabase,
        notifier: Optional[ChangeNotifier] = None,
        config: Optional[ProviderConfig] = None,
    ):
        self.config = config or ProviderConfig(
            db_path=database.path, db_version=database.version, table=database.table
        )
        if self.config.table != database.table:
            raise InvalidArgumentError(
                f"table mismatch: config={self.config.table} database={database.table}"
            )
        self.database = database
        self.notifier = notifier or ChangeNotifier()
        self.matcher = UriMatcher(self.config.authority, self.config.table)

    @classmethod
    def from_config(cls, config: ProviderConfig, notifier: Optional[ChangeNotifier] = None) -> "StationProvider":
        db = StationDatabase(
            config.db_path,
            config.db_version,
            seeder=CsvStationSeeder(config.seed_csv) if config.seed_csv else None,
            table=config.table,
        )
        return cls(db, notifier, config)

    @property
    def content_uri(self) -> str:
        return self.config.content_uri

    @property
    def table(self) -> str:
        return self.config.table

    def close(self) -> None:
        self.notifier.shutdown()
        self.database.close()

    # ---- type ----
    def get_type(self, uri: str) -> str:
        kind = self.matcher.match(uri)
        if kind == STATIONS:
            return station_repo.CONTENT_TYPE
        if kind == STATION_ID:
            return station_repo.CONTENT_ITEM_TYPE
        raise UnknownUriError(uri)

    # ---- read ----
    def query(
        self,
        uri: str,
        projection: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence] = None,
        sort_order: Optional[str] = None,
    ) -> StationCursor:
        """
        Run a capped select over the stations table.

        Args:
            uri: locator the result is bound to for change notification.
            projection: requested columns; anything outside the known
                columns is ignored.
            selection: filter with ``?`` placeholders.
            selection_args: values bound to the placeholders.
            sort_order: ``<column> [ASC|DESC]`` terms; defaults to ``code DESC``.

        Returns:
            A cursor positioned before the first row, at most
            ``config.query_limit`` rows long.
        """
        columns = station_repo.project(projection)
        if projection and len(columns) < len(set(projection)):
            logger.debug("dropped unknown columns from projection %s", list(projection))
        order = station_repo.order_by(sort_order)
        station_repo.check_selection(selection)

        with self.database.locked() as conn:
            rows = station_repo.select(
                conn, self.table, columns, selection, list(selection_args or ()), order, self.config.query_limit
            ).fetchall()

        cursor = StationCursor(columns, rows)
        # 绑定 uri，数据源变化时通知该游标的观察者
        cursor.set_notification_uri(self.notifier, uri)
        return cursor

    # ---- write ----
    def insert(self, uri: str, values: Optional[Mapping[str, object]]) -> str:
        if self.matcher.match(uri) != STATIONS:
            raise UnknownUriError(uri)
        if values is None:
            raise InvalidArgumentError("Values should not be null")

        with self.database.locked() as conn:
            row_id = station_repo.insert(conn, self.table, values)
        if row_id is not None and row_id > 0:
            station_uri = with_appended_id(self.content_uri, row_id)
            self.notifier.notify_change(station_uri)
            return station_uri

        raise InsertFailedError(uri)

    def update(
        self,
        uri: str,
        values: Optional[Mapping[str, object]],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence] = None,
    ) -> int:
        args = list(selection_args or ())
        kind = self.matcher.match(uri)
        if kind == STATIONS:
            where = selection
        elif kind == STATION_ID:
            where = f"{station_repo.ID}=?"
            if selection and selection.strip():
                where += f" AND ({selection})"
            args = [parse_id(uri), *args]
        else:
            raise UnknownUriError(uri)
        station_repo.check_selection(selection)

        if kind == STATION_ID and args[0] > station_repo.MAX_ROW_ID:
            # 超出 INTEGER 范围的 id 匹配不到任何行
            station_repo.check_values(values)
            count = 0
        else:
            with self.database.locked() as conn:
                count = station_repo.update(conn, self.table, values, where, args)
        self.notifier.notify_change(uri)
        return count

    def delete(
        self,
        uri: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence] = None,
    ) -> int:
        station_repo.check_selection(selection)
        with self.database.locked() as conn:
            count = station_repo.delete(conn, self.table, selection, list(selection_args or ()))
        self.notifier.notify_change(uri)
        return count
