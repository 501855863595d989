"""SQLite implementation of CatalogFeedbackStore.

SQL lives in the thin module-level functions; the store class owns the
connection handling and error translation.
"""
from __future__ import annotations

import logging
import sqlite3
from sqlite3 import Connection
from typing import List, Optional

from ..db import get_conn
from ..models import CatalogItem, DatabaseStats, FeedbackEntry, FeedbackStats
from .base import (
    FEATURED_LIMIT,
    RECENT_DAYS,
    CatalogFeedbackStore,
    SchemaError,
    StoreReadError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS cross_stitch_works (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  title TEXT NOT NULL,
  size TEXT,
  price INTEGER NOT NULL,
  description TEXT,
  image_url TEXT NOT NULL,
  created_at TEXT DEFAULT (datetime('now','localtime'))
);
CREATE TABLE IF NOT EXISTS feedback (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT NOT NULL,
  description TEXT NOT NULL,
  created_at TEXT DEFAULT (datetime('now','localtime'))
);
"""

# 缺失的 created_at 按“当前时间”处理
_FEEDBACK_TS = "COALESCE(created_at, datetime('now','localtime'))"
_FEEDBACK_TS_DISPLAY = f"strftime('%d.%m.%Y %H:%M', {_FEEDBACK_TS})"


def ensure_schema(conn: Connection):
    conn.executescript(DDL)


def count_works(conn: Connection) -> int:
    return conn.execute("SELECT COUNT(*) AS cnt FROM cross_stitch_works").fetchone()["cnt"]


def insert_work(conn: Connection, title: str, size: str, price: int, description: str, image_url: str):
    conn.execute(
        "INSERT INTO cross_stitch_works(title, size, price, description, image_url) VALUES(?,?,?,?,?)",
        (title, size, int(price), description, image_url),
    )


def list_works(conn: Connection, limit: Optional[int] = None):
    sql = (
        "SELECT id, title, COALESCE(size,'') AS size, price, "
        "COALESCE(description,'') AS description, image_url, created_at "
        "FROM cross_stitch_works ORDER BY id"
    )
    params: tuple = ()
    if limit is not None:
        sql += " LIMIT ?"
        params = (limit,)
    return conn.execute(sql, params).fetchall()


def insert_feedback(conn: Connection, name: str, email: str, description: str):
    conn.execute(
        "INSERT INTO feedback(name, email, description, created_at) "
        "VALUES(?, ?, ?, datetime('now','localtime'))",
        (name, email, description),
    )


def list_feedback(conn: Connection):
    sql = (
        f"SELECT id, name, email, description, {_FEEDBACK_TS_DISPLAY} AS created_at "
        f"FROM feedback ORDER BY {_FEEDBACK_TS} DESC, id DESC"
    )
    return conn.execute(sql).fetchall()


def count_feedback(conn: Connection) -> int:
    return conn.execute("SELECT COUNT(*) AS cnt FROM feedback").fetchone()["cnt"]


def count_recent_feedback(conn: Connection, days: int) -> int:
    row = conn.execute(
        "SELECT COUNT(*) AS cnt FROM feedback "
        "WHERE created_at >= datetime('now','localtime',?) OR created_at IS NULL",
        (f"-{int(days)} days",),
    ).fetchone()
    return row["cnt"]


def last_feedback_display_ts(conn: Connection) -> Optional[str]:
    row = conn.execute(
        f"SELECT {_FEEDBACK_TS_DISPLAY} AS ts FROM feedback "
        f"ORDER BY {_FEEDBACK_TS} DESC, id DESC LIMIT 1"
    ).fetchone()
    return row["ts"] if row else None


def _to_item(r) -> CatalogItem:
    return CatalogItem(
        id=r["id"],
        title=r["title"],
        size=r["size"],
        price=r["price"],
        description=r["description"],
        image_url=r["image_url"],
        created_at=r["created_at"],
    )


def _to_feedback(r) -> FeedbackEntry:
    return FeedbackEntry(
        id=r["id"],
        name=r["name"],
        email=r["email"],
        description=r["description"],
        created_at=r["created_at"],
    )


class SqliteCatalogFeedbackStore(CatalogFeedbackStore):
    def __init__(self, db_path: str):
        self.db_path = db_path

    def initialize(self) -> None:
        try:
            with get_conn(self.db_path) as conn:
                ensure_schema(conn)
        except sqlite3.Error as e:
            raise SchemaError(f"failed to create schema in {self.db_path}: {e}") from e

    def count_catalog_items(self) -> int:
        try:
            with get_conn(self.db_path) as conn:
                return count_works(conn)
        except sqlite3.Error as e:
            raise StoreReadError(f"catalog count failed: {e}") from e

    def insert_catalog_item(self, title: str, size: str, price: int, description: str, image_url: str) -> None:
        try:
            with get_conn(self.db_path) as conn:
                insert_work(conn, title, size, price, description, image_url)
        except sqlite3.Error as e:
            raise StoreWriteError(f"catalog insert failed for {title}: {e}") from e

    def list_all_catalog_items(self) -> List[CatalogItem]:
        try:
            with get_conn(self.db_path) as conn:
                return [_to_item(r) for r in list_works(conn)]
        except sqlite3.Error as e:
            raise StoreReadError(f"catalog query failed: {e}") from e

    def list_featured_catalog_items(self) -> List[CatalogItem]:
        try:
            with get_conn(self.db_path) as conn:
                return [_to_item(r) for r in list_works(conn, FEATURED_LIMIT)]
        except sqlite3.Error as e:
            raise StoreReadError(f"featured query failed: {e}") from e

    def save_feedback(self, name: str, email: str, description: str) -> None:
        logger.info("saving feedback from %s <%s>", name, email)
        try:
            with get_conn(self.db_path) as conn:
                insert_feedback(conn, name, email, description)
        except sqlite3.Error as e:
            raise StoreWriteError(f"feedback insert failed: {e}") from e

    def list_all_feedback(self) -> List[FeedbackEntry]:
        try:
            with get_conn(self.db_path) as conn:
                return [_to_feedback(r) for r in list_feedback(conn)]
        except sqlite3.Error as e:
            raise StoreReadError(f"feedback query failed: {e}") from e

    def feedback_statistics(self) -> FeedbackStats:
        try:
            with get_conn(self.db_path) as conn:
                return FeedbackStats(
                    total_count=count_feedback(conn),
                    last_7_days_count=count_recent_feedback(conn, RECENT_DAYS),
                    most_recent_display_timestamp=last_feedback_display_ts(conn),
                )
        except sqlite3.Error as e:
            raise StoreReadError(f"feedback statistics failed: {e}") from e

    def database_stats(self) -> DatabaseStats:
        try:
            with get_conn(self.db_path) as conn:
                return DatabaseStats(catalog_count=count_works(conn), feedback_count=count_feedback(conn))
        except sqlite3.Error as e:
            raise StoreReadError(f"database stats failed: {e}") from e
