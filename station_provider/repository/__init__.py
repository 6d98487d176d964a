"""Repository layer: SQL for the stations table (SQLite).

Functions take an open connection and a table name; callers own transactions.
"""
from __future__ import annotations
