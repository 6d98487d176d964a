from __future__ import annotations

# station_provider/config.py
import os
import re
from dataclasses import dataclass

import yaml

from .errors import InvalidArgumentError

# 解析顺序：
# 1) 环境变量 STATION_DB_PATH / STATION_DB_VERSION / STATION_QUERY_LIMIT / STATION_SEED_CSV
# 2) config.yaml 的 test_db_path（当检测到测试环境时）
# 3) config.yaml 的 db_path 等键
# 4) 兜底：项目根 station.db
_PACKAGE_DIR = os.path.dirname(__file__)
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)
_ROOT_DB = os.path.join(_PROJECT_ROOT, "station.db")

DEFAULT_AUTHORITY = "eu.tanov.android.StationProvider"
DEFAULT_TABLE = "stations"
DEFAULT_VERSION = 1
DEFAULT_QUERY_LIMIT = 10
DEFAULT_SEED_CSV = os.path.join(_PACKAGE_DIR, "seeds", "stations.csv")

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_YAML_KEYS = ("db_path", "test_db_path", "db_version", "table", "authority", "query_limit", "seed_csv")


def _read_config_yaml(path: str | None = None) -> dict:
    cfg_path = path or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    out = {}
    for k in _YAML_KEYS:
        v = cfg.get(k)
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        if v is not None:
            out[k] = v
    return out


def _is_test_env() -> bool:
    return (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)


def check_identifier(name: str) -> str:
    """Table names end up in DDL text, so only plain identifiers are accepted."""
    if not isinstance(name, str) or not _IDENT_RE.match(name):
        raise InvalidArgumentError(f"invalid table name: {name!r}")
    return name


@dataclass
class ProviderConfig:
    db_path: str = _ROOT_DB
    db_version: int = DEFAULT_VERSION
    table: str = DEFAULT_TABLE
    authority: str = DEFAULT_AUTHORITY
    query_limit: int = DEFAULT_QUERY_LIMIT
    seed_csv: str = DEFAULT_SEED_CSV

    def __post_init__(self):
        check_identifier(self.table)
        self.db_version = int(self.db_version)
        self.query_limit = int(self.query_limit)
        if self.db_version < 1:
            raise InvalidArgumentError(f"version must be >= 1, was {self.db_version}")
        if self.query_limit < 1:
            raise InvalidArgumentError(f"query_limit must be >= 1, was {self.query_limit}")

    @property
    def content_uri(self) -> str:
        return f"content://{self.authority}/{self.table}"


def load_config(config_yaml: str | None = None) -> ProviderConfig:
    cfg = _read_config_yaml(config_yaml)

    if os.environ.get("STATION_DB_PATH"):
        path = os.environ["STATION_DB_PATH"]
    elif _is_test_env() and cfg.get("test_db_path"):
        path = cfg["test_db_path"]
    else:
        path = cfg.get("db_path") or _ROOT_DB

    # 确保目录存在
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)

    return ProviderConfig(
        db_path=path,
        db_version=os.environ.get("STATION_DB_VERSION") or cfg.get("db_version", DEFAULT_VERSION),
        table=cfg.get("table", DEFAULT_TABLE),
        authority=cfg.get("authority", DEFAULT_AUTHORITY),
        query_limit=os.environ.get("STATION_QUERY_LIMIT") or cfg.get("query_limit", DEFAULT_QUERY_LIMIT),
        seed_csv=os.environ.get("STATION_SEED_CSV") or cfg.get("seed_csv", DEFAULT_SEED_CSV),
    )
