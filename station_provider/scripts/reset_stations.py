"""
Rebuild the stations table from the seed CSV by bumping the schema version.

WARNING: opening the database with a newer version DROPS the stations table
and every row in it, then re-creates it from the seed CSV.

Usage:
  python -m station_provider.scripts.reset_stations --version 2 \
      --seed station_provider/seeds/stations.csv
"""
from __future__ import annotations

import argparse
import dataclasses
import logging

from station_provider.config import load_config
from station_provider.db import StationDatabase, get_conn
from station_provider.logs import LogContext, ensure_log_schema
from station_provider.repository import station_repo
from station_provider.services.station_svc import StationProvider


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--db", help="database path (default: from config)")
    ap.add_argument("--version", type=int, help="schema version to open with (default: stored + 1)")
    ap.add_argument("--seed", help="seed CSV (default: from config)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = load_config()
    if args.db:
        cfg = dataclasses.replace(cfg, db_path=args.db)
    if args.seed:
        cfg = dataclasses.replace(cfg, seed_csv=args.seed)

    version = args.version
    if version is None:
        with get_conn(cfg.db_path) as conn:
            version = StationDatabase.stored_version(conn) + 1
    cfg = dataclasses.replace(cfg, db_version=version)

    ensure_log_schema(cfg.db_path)
    log = LogContext("RESET_STATIONS", db_path=cfg.db_path)
    log.set_payload({"version": version, "seed_csv": cfg.seed_csv})

    provider = StationProvider.from_config(cfg)
    try:
        conn = provider.database.open()
        total = station_repo.count(conn, cfg.table)
    except Exception as e:
        log.write("ERROR", str(e))
        raise
    finally:
        provider.close()

    res = {"version": version, "table": cfg.table, "rows": total}
    log.set_after(res)
    log.write("OK")
    print({"message": "ok", **res})


if __name__ == "__main__":
    main()
