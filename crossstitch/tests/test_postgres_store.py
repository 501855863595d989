"""
PostgreSQL 仓储测试（连接池与游标全部 mock，不需要真实数据库）
"""
import threading
import time
import unittest
from unittest.mock import MagicMock, patch

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from crossstitch.repository import SchemaError, StoreReadError, StoreWriteError
from crossstitch.repository.postgres_store import PostgresCatalogFeedbackStore


class TestPostgresStore(unittest.TestCase):

    def setUp(self):
        self.cursor = MagicMock()
        self.conn = MagicMock()
        self.conn.closed = 0
        self.conn.cursor.return_value.__enter__.return_value = self.cursor
        self.pool = MagicMock()
        self.pool.maxconn = 4
        self.pool.getconn.return_value = self.conn
        self.store = PostgresCatalogFeedbackStore(self.pool)

    def test_initialize_creates_both_tables(self):
        self.store.initialize()
        sqls = [c.args[0] for c in self.cursor.execute.call_args_list]
        self.assertEqual(len(sqls), 2)
        self.assertIn("cross_stitch_works", sqls[0])
        self.assertIn("feedback", sqls[1])
        self.assertTrue(self.conn.autocommit)
        self.pool.putconn.assert_called_once_with(self.conn, close=False)

    def test_initialize_failure(self):
        self.cursor.execute.side_effect = psycopg2.OperationalError("boom")
        with self.assertRaises(SchemaError):
            self.store.initialize()
        # 连接仍然归还连接池
        self.pool.putconn.assert_called_once_with(self.conn, close=False)

    def test_featured_uses_limit(self):
        self.cursor.fetchall.return_value = [
            {"id": 1, "title": "«Шаман»", "size": "57x75 см", "price": 4500,
             "description": "d", "image_url": "/static/images/shaman.jpg"},
        ]
        items = self.store.list_featured_catalog_items()
        sql, params = self.cursor.execute.call_args.args
        self.assertIn("ORDER BY id LIMIT %s", sql)
        self.assertEqual(params, (3,))
        self.assertEqual(items[0].title, "«Шаман»")

    def test_save_feedback_failure(self):
        self.cursor.execute.side_effect = psycopg2.IntegrityError("null value")
        with self.assertRaises(StoreWriteError):
            self.store.save_feedback("a", "b", "c")

    def test_statistics_on_empty_table(self):
        self.cursor.fetchone.side_effect = [{"cnt": 0}, {"cnt": 0}, None]
        stats = self.store.feedback_statistics()
        self.assertEqual(stats.total_count, 0)
        self.assertEqual(stats.last_7_days_count, 0)
        self.assertIsNone(stats.most_recent_display_timestamp)

    def test_seed_continues_after_failed_insert(self):
        self.cursor.fetchone.return_value = {"cnt": 0}
        calls = {"n": 0}

        def execute(sql, params=None):
            if sql.startswith("INSERT"):
                calls["n"] += 1
                if calls["n"] == 2:
                    raise psycopg2.DataError("bad row")

        self.cursor.execute.side_effect = execute
        self.assertEqual(self.store.seed_if_empty(), 3)
        self.assertEqual(calls["n"], 4)

    def test_close_closes_pool(self):
        self.store.close()
        self.pool.closeall.assert_called_once()


    def test_broken_connection_is_closed_not_reused(self):
        def execute(sql, params=None):
            # 服务器重启后连接被断开
            self.conn.closed = 2
            raise psycopg2.OperationalError("server closed the connection unexpectedly")

        self.cursor.execute.side_effect = execute
        with self.assertRaises(StoreReadError):
            self.store.count_catalog_items()
        self.pool.putconn.assert_called_once_with(self.conn, close=True)


class TestPostgresPoolConcurrency(unittest.TestCase):

    def test_requests_wait_for_free_connection(self):
        maxconn = 3
        workers = 12
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        errors = []

        def worker(store):
            try:
                with store._cursor():
                    with lock:
                        state["active"] += 1
                        state["peak"] = max(state["peak"], state["active"])
                    time.sleep(0.05)
                    with lock:
                        state["active"] -= 1
            except Exception as e:
                errors.append(f"{type(e).__name__}: {e}")

        with patch("psycopg2.connect", side_effect=lambda *a, **k: MagicMock(closed=0)):
            pool = ThreadedConnectionPool(1, maxconn, dbname="shop")
            store = PostgresCatalogFeedbackStore(pool)
            threads = [threading.Thread(target=worker, args=(store,)) for _ in range(workers)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=10)
            store.close()

        self.assertEqual(errors, [])
        self.assertLessEqual(state["peak"], maxconn)
        self.assertEqual(state["active"], 0)


if __name__ == '__main__':
    unittest.main()
