from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

from ..logs import LogContext
from ..models import CatalogItem, DatabaseStats, FeedbackEntry, FeedbackStats

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


class SchemaError(StoreError):
    """Schema creation failed; the service cannot start."""


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass


# 首次启动且目录为空时写入的固定作品
SEED_ITEMS = [
    {
        "title": "«Шаман»",
        "size": "57x75 см (1170x1560 крестиков)",
        "price": 4500,
        "description": "Яркая композиция, выполненная нитками DMC. Идеально для гостиной или стилизации интерьера.",
        "image_url": "/static/images/shaman.jpg",
    },
    {
        "title": "«Фантазия»",
        "size": "60x75 см (1560x1960 крестиков)",
        "price": 6800,
        "description": "Хранитель снов и фантазий. Использованы оттенки синего и фиолетового.",
        "image_url": "/static/images/fantasy.jpg",
    },
    {
        "title": "«Золотая рыбка»",
        "size": "50x75 см (980x1170 крестиков)",
        "price": 3800,
        "description": "Портрет девушки у моря в окружении золотых рыбок. Подходит для подарка.",
        "image_url": "/static/images/gold_fish.jpg",
    },
    {
        "title": "«Не нужно слов»",
        "size": "50x75 см (980x1170 крестиков)",
        "price": 5200,
        "description": "Влюбленная пара. Создаёт уютную атмосферу в интерьере.",
        "image_url": "/static/images/no_words.jpg",
    },
]

FEATURED_LIMIT = 3
RECENT_DAYS = 7


class CatalogFeedbackStore(ABC):
    """
    Catalog and feedback persistence used by the web layer.

    Feedback ordering treats a missing created_at as "now", so such rows sort
    as the most recent ones. The same rule counts them in last_7_days_count.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Create both tables if absent. Raises SchemaError."""

    @abstractmethod
    def count_catalog_items(self) -> int: ...

    @abstractmethod
    def insert_catalog_item(self, title: str, size: str, price: int, description: str, image_url: str) -> None:
        """Only used by seeding; the running service never writes the catalog."""

    def seed_if_empty(self) -> int:
        """
        Insert SEED_ITEMS when the catalog is empty; returns the number of rows inserted.
        A failing insert is logged and skipped, the remaining rows are still attempted.
        """
        count = self.count_catalog_items()
        if count:
            logger.info("catalog already holds %d items, skip seeding", count)
            return 0
        logger.info("catalog is empty, seeding %d items", len(SEED_ITEMS))
        inserted = 0
        for item in SEED_ITEMS:
            log = LogContext("SEED_ITEM", user="system")
            log.set_entity("cross_stitch_works", item["title"])
            try:
                self.insert_catalog_item(**item)
            except Exception as e:
                log.write("ERROR", str(e))
                continue
            log.write("OK")
            inserted += 1
        return inserted

    @abstractmethod
    def list_all_catalog_items(self) -> List[CatalogItem]: ...

    @abstractmethod
    def list_featured_catalog_items(self) -> List[CatalogItem]: ...

    @abstractmethod
    def save_feedback(self, name: str, email: str, description: str) -> None: ...

    @abstractmethod
    def list_all_feedback(self) -> List[FeedbackEntry]: ...

    @abstractmethod
    def feedback_statistics(self) -> FeedbackStats: ...

    @abstractmethod
    def database_stats(self) -> DatabaseStats: ...

    def close(self) -> None:
        pass
