import pytest

from station_provider.config import DEFAULT_SEED_CSV
from station_provider.services.seed_svc import CsvStationSeeder


def test_bundled_seed_file_loads():
    rows = CsvStationSeeder(DEFAULT_SEED_CSV).load_rows()
    assert len(rows) > 10
    for r in rows:
        assert set(r) == {"code", "lat", "lon", "label"}
        assert isinstance(r["code"], int)
        assert isinstance(r["lat"], float) and isinstance(r["lon"], float)
        assert r["label"]


def test_seeder_inserts_into_named_table(empty_provider, seed_csv):
    conn = empty_provider.database.open()
    n = CsvStationSeeder(seed_csv)(conn, "stations")
    assert n == 12
    assert conn.execute("SELECT COUNT(1) FROM stations").fetchone()[0] == 12


def test_missing_columns_rejected(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("code,lat\n1,2.0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        CsvStationSeeder(str(path)).load_rows()
