from station_provider.db import StationDatabase, get_conn
from station_provider.scripts.reset_stations import main


def test_reset_bumps_version_and_reseeds(tmp_db_path, seed_csv, capsys):
    main(["--db", tmp_db_path, "--seed", seed_csv])
    with get_conn(tmp_db_path) as conn:
        assert StationDatabase.stored_version(conn) == 1
        conn.execute("DELETE FROM stations WHERE code > 3")
        assert conn.execute("SELECT COUNT(1) FROM stations").fetchone()[0] == 3

    main(["--db", tmp_db_path, "--seed", seed_csv])
    out = capsys.readouterr().out
    assert "'rows': 12" in out
    with get_conn(tmp_db_path) as conn:
        assert StationDatabase.stored_version(conn) == 2
        assert conn.execute("SELECT COUNT(1) FROM stations").fetchone()[0] == 12
        logs = conn.execute("SELECT result FROM operation_log WHERE action='RESET_STATIONS'").fetchall()
        assert [r["result"] for r in logs] == ["OK", "OK"]
