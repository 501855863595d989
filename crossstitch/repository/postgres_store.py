from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

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

CREATE_WORKS = """
CREATE TABLE IF NOT EXISTS cross_stitch_works (
    id SERIAL PRIMARY KEY,
    title VARCHAR(200) NOT NULL,
    size VARCHAR(100),
    price INTEGER NOT NULL,
    description TEXT,
    image_url VARCHAR(500) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_FEEDBACK = """
CREATE TABLE IF NOT EXISTS feedback (
    id SERIAL PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    email VARCHAR(150) NOT NULL,
    description TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT now()
)
"""

_WORKS_SELECT = (
    "SELECT id, title, COALESCE(size, '') AS size, price, "
    "COALESCE(description, '') AS description, image_url, "
    "TO_CHAR(created_at, 'YYYY-MM-DD HH24:MI:SS') AS created_at "
    "FROM cross_stitch_works ORDER BY id"
)

_FEEDBACK_TS_DISPLAY = (
    "COALESCE(TO_CHAR(created_at, 'DD.MM.YYYY HH24:MI'), TO_CHAR(now(), 'DD.MM.YYYY HH24:MI'))"
)
_FEEDBACK_ORDER = "ORDER BY COALESCE(created_at, now()) DESC, id DESC"


class PostgresCatalogFeedbackStore(CatalogFeedbackStore):
    """
    PostgreSQL store over a shared psycopg2 connection pool. Every statement runs in autocommit.

    ThreadedConnectionPool raises PoolError when all connections are checked out,
    so callers queue on a semaphore sized to the pool instead.
    """

    def __init__(self, pool: ThreadedConnectionPool, max_connections: int | None = None):
        self.pool = pool
        self._slots = threading.BoundedSemaphore(int(max_connections or pool.maxconn))

    @contextmanager
    def _cursor(self) -> Iterator[RealDictCursor]:
        with self._slots:
            conn = self.pool.getconn()
            try:
                conn.autocommit = True
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    yield cur
            finally:
                # 断开的连接不放回池中
                self.pool.putconn(conn, close=bool(conn.closed))

    def initialize(self) -> None:
        try:
            with self._cursor() as cur:
                cur.execute(CREATE_WORKS)
                cur.execute(CREATE_FEEDBACK)
        except psycopg2.Error as e:
            raise SchemaError(f"failed to create schema: {e}") from e

    def count_catalog_items(self) -> int:
        try:
            with self._cursor() as cur:
                cur.execute("SELECT COUNT(*) AS cnt FROM cross_stitch_works")
                return cur.fetchone()["cnt"]
        except psycopg2.Error as e:
            raise StoreReadError(f"catalog count failed: {e}") from e

    def insert_catalog_item(self, title: str, size: str, price: int, description: str, image_url: str) -> None:
        try:
            with self._cursor() as cur:
                cur.execute(
                    "INSERT INTO cross_stitch_works (title, size, price, description, image_url) "
                    "VALUES (%s, %s, %s, %s, %s)",
                    (title, size, int(price), description, image_url),
                )
        except psycopg2.Error as e:
            raise StoreWriteError(f"catalog insert failed for {title}: {e}") from e

    def _query_works(self, sql: str, params: tuple = ()) -> List[CatalogItem]:
        try:
            with self._cursor() as cur:
                cur.execute(sql, params)
                return [CatalogItem(**r) for r in cur.fetchall()]
        except psycopg2.Error as e:
            raise StoreReadError(f"catalog query failed: {e}") from e

    def list_all_catalog_items(self) -> List[CatalogItem]:
        return self._query_works(_WORKS_SELECT)

    def list_featured_catalog_items(self) -> List[CatalogItem]:
        return self._query_works(_WORKS_SELECT + " LIMIT %s", (FEATURED_LIMIT,))

    def save_feedback(self, name: str, email: str, description: str) -> None:
        logger.info("saving feedback from %s <%s>", name, email)
        try:
            with self._cursor() as cur:
                cur.execute(
                    "INSERT INTO feedback (name, email, description, created_at) VALUES (%s, %s, %s, now())",
                    (name, email, description),
                )
        except psycopg2.Error as e:
            raise StoreWriteError(f"feedback insert failed: {e}") from e

    def list_all_feedback(self) -> List[FeedbackEntry]:
        try:
            with self._cursor() as cur:
                cur.execute(
                    f"SELECT id, name, email, description, {_FEEDBACK_TS_DISPLAY} AS created_at "
                    f"FROM feedback {_FEEDBACK_ORDER}"
                )
                return [FeedbackEntry(**r) for r in cur.fetchall()]
        except psycopg2.Error as e:
            raise StoreReadError(f"feedback query failed: {e}") from e

    def feedback_statistics(self) -> FeedbackStats:
        try:
            with self._cursor() as cur:
                cur.execute("SELECT COUNT(*) AS cnt FROM feedback")
                total = cur.fetchone()["cnt"]
                # NULL created_at 也算作最近
                cur.execute(
                    "SELECT COUNT(*) AS cnt FROM feedback "
                    "WHERE created_at >= now() - make_interval(days => %s) OR created_at IS NULL",
                    (RECENT_DAYS,),
                )
                recent = cur.fetchone()["cnt"]
                cur.execute(f"SELECT {_FEEDBACK_TS_DISPLAY} AS ts FROM feedback {_FEEDBACK_ORDER} LIMIT 1")
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise StoreReadError(f"feedback statistics failed: {e}") from e
        return FeedbackStats(
            total_count=total,
            last_7_days_count=recent,
            most_recent_display_timestamp=row["ts"] if row else None,
        )

    def database_stats(self) -> DatabaseStats:
        try:
            with self._cursor() as cur:
                cur.execute("SELECT COUNT(*) AS cnt FROM cross_stitch_works")
                works = cur.fetchone()["cnt"]
                cur.execute("SELECT COUNT(*) AS cnt FROM feedback")
                feedback = cur.fetchone()["cnt"]
        except psycopg2.Error as e:
            raise StoreReadError(f"database stats failed: {e}") from e
        return DatabaseStats(catalog_count=works, feedback_count=feedback)

    def close(self) -> None:
        self.pool.closeall()
