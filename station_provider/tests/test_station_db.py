from __future__ import annotations

import logging

import pytest

from station_provider.db import StationDatabase, get_conn
from station_provider.errors import DowngradeError, InvalidArgumentError
from station_provider.repository import station_repo
from station_provider.services.seed_svc import CsvStationSeeder


def _count(db):
    return station_repo.count(db.open(), db.table)


def test_first_open_creates_and_seeds(tmp_db_path, seed_csv):
    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(seed_csv))
    assert not db.is_open
    try:
        assert _count(db) == 12
        assert StationDatabase.stored_version(db.open()) == 1
    finally:
        db.close()


def test_connection_is_shared_and_reused(tmp_db_path):
    db = StationDatabase(tmp_db_path, 1)
    try:
        assert db.get_readable_connection() is db.get_writable_connection()
        assert db.open() is db.open()
    finally:
        db.close()
    assert not db.is_open


def test_reopen_same_version_keeps_rows(tmp_db_path, seed_csv):
    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(seed_csv))
    db.open().execute("INSERT INTO stations(code, lat, lon, label) VALUES(?,?,?,?)", (99, 0.0, 0.0, "extra"))
    db.close()

    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(seed_csv))
    try:
        assert _count(db) == 13
    finally:
        db.close()


def test_seeding_failure_is_logged_and_swallowed(tmp_db_path, caplog):
    def broken_seeder(conn, table):
        conn.execute(f"INSERT INTO {table}(code) VALUES(1)")
        raise RuntimeError("seed source unavailable")

    db = StationDatabase(tmp_db_path, 1, seeder=broken_seeder)
    with caplog.at_level(logging.ERROR, logger="station_provider.db"):
        conn = db.open()
    try:
        # table exists, partial seed rows were rolled back, version still recorded
        assert station_repo.count(conn, "stations") == 0
        assert StationDatabase.stored_version(conn) == 1
        assert any("failed to create stations" in r.getMessage() for r in caplog.records)
    finally:
        db.close()


def test_missing_seed_file_leaves_empty_table(tmp_db_path, tmp_path):
    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(str(tmp_path / "nope.csv")))
    try:
        assert _count(db) == 0
    finally:
        db.close()


def test_version_bump_destroys_rows_and_reseeds(tmp_db_path, seed_csv, caplog):
    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(seed_csv))
    conn = db.open()
    conn.execute("INSERT INTO stations(code, lat, lon, label) VALUES(?,?,?,?)", (500, 1.0, 1.0, "mine"))
    conn.execute("DELETE FROM stations WHERE code = ?", (1,))
    db.close()

    db = StationDatabase(tmp_db_path, 2, seeder=CsvStationSeeder(seed_csv))
    with caplog.at_level(logging.WARNING, logger="station_provider.db"):
        conn = db.open()
    try:
        codes = sorted(r["code"] for r in conn.execute("SELECT code FROM stations"))
        assert codes == list(range(1, 13))
        assert StationDatabase.stored_version(conn) == 2
        assert any("destroy all old data" in r.getMessage() for r in caplog.records)
    finally:
        db.close()


def test_downgrade_is_refused(tmp_db_path):
    newer = StationDatabase(tmp_db_path, 3)
    newer.open()
    newer.close()

    db = StationDatabase(tmp_db_path, 2)
    with pytest.raises(DowngradeError):
        db.open()
    assert not db.is_open


def test_version_must_be_positive(tmp_db_path):
    with pytest.raises(InvalidArgumentError):
        StationDatabase(tmp_db_path, 0)


def test_table_name_must_be_identifier(tmp_db_path):
    with pytest.raises(InvalidArgumentError):
        StationDatabase(tmp_db_path, 1, table="stations; DROP TABLE x")


def test_custom_table_name(tmp_db_path, seed_csv):
    db = StationDatabase(tmp_db_path, 1, seeder=CsvStationSeeder(seed_csv), table="tenant_a_stations")
    try:
        assert _count(db) == 12
    finally:
        db.close()
    with get_conn(tmp_db_path) as conn:
        names = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert "tenant_a_stations" in names
    assert "stations" not in names
