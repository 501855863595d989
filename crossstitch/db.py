from __future__ import annotations

# crossstitch/db.py
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from psycopg2.pool import ThreadedConnectionPool

from .config import Settings


@contextmanager
def get_conn(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    获取 SQLite 连接（autocommit），row_factory 为 Row。
    每次调用新开连接，退出时关闭。
    """
    dirn = os.path.dirname(db_path) or "."
    os.makedirs(dirn, exist_ok=True)
    conn = sqlite3.connect(
        db_path,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


def create_pg_pool(settings: Settings, minconn: int = 1, maxconn: int = 10) -> ThreadedConnectionPool:
    """PostgreSQL 连接池，所有请求线程共享。"""
    return ThreadedConnectionPool(
        minconn,
        maxconn,
        host=settings.db_host,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=settings.db_name,
        sslmode=settings.db_sslmode,
    )
