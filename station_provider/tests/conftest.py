import sys
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

SEED_ROWS = [
    (code, 42.60 + code / 100.0, 23.30 + code / 100.0, f"Спирка {code}")
    for code in range(1, 13)
]
AUTHORITY = "eu.tanov.android.StationProvider"
CONTENT_URI = f"content://{AUTHORITY}/stations"


@pytest.fixture()
def tmp_db_path(tmp_path):
    return str(tmp_path / "station_test.db")


@pytest.fixture()
def seed_csv(tmp_path):
    path = tmp_path / "stations.csv"
    lines = ["code,lat,lon,label"]
    for code, lat, lon, label in SEED_ROWS:
        lines.append(f"{code},{lat},{lon},{label}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


@pytest.fixture()
def config(tmp_db_path, seed_csv):
    from station_provider.config import ProviderConfig
    return ProviderConfig(db_path=tmp_db_path, seed_csv=seed_csv)


@pytest.fixture()
def notifier():
    from station_provider.notifier import ChangeNotifier
    n = ChangeNotifier(synchronous=True)
    yield n
    n.shutdown()


@pytest.fixture()
def provider(config, notifier):
    from station_provider.services.station_svc import StationProvider
    p = StationProvider.from_config(config, notifier)
    yield p
    p.close()


@pytest.fixture()
def empty_provider(tmp_db_path, notifier):
    """Provider over a table created without seed rows."""
    from station_provider.db import StationDatabase
    from station_provider.services.station_svc import StationProvider
    p = StationProvider(StationDatabase(tmp_db_path, 1), notifier)
    yield p
    p.close()


@pytest.fixture()
def client(config):
    from fastapi.testclient import TestClient
    from station_provider.api import create_app
    with TestClient(create_app(config)) as c:
        yield c
