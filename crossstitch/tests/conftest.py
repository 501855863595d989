import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

import pytest

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from crossstitch.models import CatalogItem, DatabaseStats, FeedbackEntry, FeedbackStats
from crossstitch.repository import CatalogFeedbackStore


class InMemoryStore(CatalogFeedbackStore):
    """Dict-backed store for route tests; follows the same ordering rules as the SQL stores."""

    def __init__(self):
        self.works: List[dict] = []
        self.feedback: List[dict] = []
        self.initialized = False

    def initialize(self) -> None:
        self.initialized = True

    def count_catalog_items(self) -> int:
        return len(self.works)

    def insert_catalog_item(self, title, size, price, description, image_url) -> None:
        self.works.append({
            "id": len(self.works) + 1,
            "title": title,
            "size": size,
            "price": price,
            "description": description,
            "image_url": image_url,
        })

    def list_all_catalog_items(self) -> List[CatalogItem]:
        return [CatalogItem(**w) for w in self.works]

    def list_featured_catalog_items(self) -> List[CatalogItem]:
        return self.list_all_catalog_items()[:3]

    def save_feedback(self, name, email, description, created_at: Optional[datetime] = None) -> None:
        self.feedback.append({
            "id": len(self.feedback) + 1,
            "name": name,
            "email": email,
            "description": description,
            "created_at": created_at or datetime.now(),
        })

    def _ordered(self) -> List[dict]:
        now = datetime.now()
        return sorted(self.feedback, key=lambda f: (f["created_at"] or now, f["id"]), reverse=True)

    def list_all_feedback(self) -> List[FeedbackEntry]:
        now = datetime.now()
        return [
            FeedbackEntry(
                id=f["id"],
                name=f["name"],
                email=f["email"],
                description=f["description"],
                created_at=(f["created_at"] or now).strftime("%d.%m.%Y %H:%M"),
            )
            for f in self._ordered()
        ]

    def feedback_statistics(self) -> FeedbackStats:
        cutoff = datetime.now() - timedelta(days=7)
        entries = self.list_all_feedback()
        return FeedbackStats(
            total_count=len(self.feedback),
            last_7_days_count=sum(1 for f in self.feedback if f["created_at"] is None or f["created_at"] >= cutoff),
            most_recent_display_timestamp=entries[0].created_at if entries else None,
        )

    def database_stats(self) -> DatabaseStats:
        return DatabaseStats(catalog_count=len(self.works), feedback_count=len(self.feedback))


@pytest.fixture()
def tmp_db_path(tmp_path):
    return str(tmp_path / "shop_test.db")


@pytest.fixture()
def sqlite_store(tmp_db_path):
    from crossstitch.repository.sqlite_store import SqliteCatalogFeedbackStore
    store = SqliteCatalogFeedbackStore(tmp_db_path)
    store.initialize()
    return store


@pytest.fixture()
def memory_store():
    store = InMemoryStore()
    store.seed_if_empty()
    return store


@pytest.fixture()
def client(memory_store):
    from fastapi.testclient import TestClient
    from crossstitch.api import create_app
    return TestClient(create_app(memory_store))


@pytest.fixture()
def sqlite_client(sqlite_store):
    from fastapi.testclient import TestClient
    from crossstitch.api import create_app, prepare_store
    return TestClient(create_app(prepare_store(sqlite_store)))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Settings come from the environment; keep the developer's shell out of tests
    for k in ("DB_BACKEND", "DB_PATH", "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD",
              "DB_NAME", "DB_SSLMODE", "STATIC_DIR", "LOG_LEVEL", "HOST", "PORT", "SHOP_CONFIG"):
        monkeypatch.delenv(k, raising=False)
