from __future__ import annotations

# station_provider/services/seed_svc.py
import logging
from sqlite3 import Connection

import pandas as pd

from ..repository import station_repo

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("code", "lat", "lon", "label")


class CsvStationSeeder:
    """从 CSV 导入初始站点；CSV 要含列：code, lat, lon, label"""

    def __init__(self, csv_path: str):
        self.csv_path = csv_path

    def load_rows(self) -> list[dict]:
        df = pd.read_csv(self.csv_path, dtype={"label": str}, keep_default_na=False)
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"seed csv {self.csv_path} missing columns: {', '.join(missing)}")
        rows = []
        for _, r in df.iterrows():
            rows.append({
                station_repo.CODE: int(r["code"]),
                station_repo.LAT: float(r["lat"]),
                station_repo.LON: float(r["lon"]),
                station_repo.LABEL: str(r["label"]).strip(),
            })
        return rows

    def __call__(self, conn: Connection, table: str) -> int:
        rows = self.load_rows()
        n = station_repo.insert_many(conn, table, rows)
        logger.info("seeded %d stations into %s from %s", n, table, self.csv_path)
        return n
