from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from ..rendering import render
from ..repository import CatalogFeedbackStore, StoreError
from .deps import get_store

logger = logging.getLogger(__name__)

# TODO: put /admin behind authentication before exposing the site publicly
router = APIRouter(prefix="/admin")


@router.get("/feedback", response_class=HTMLResponse)
def admin_feedback(store: CatalogFeedbackStore = Depends(get_store)):
    try:
        feedbacks = store.list_all_feedback()
    except Exception as e:
        logger.exception("loading feedback failed")
        raise HTTPException(status_code=500, detail=str(e))
    return render(
        "admin_feedback.html",
        page_title="Админка - Отзывы",
        feedbacks=feedbacks,
        count=len(feedbacks),
    )


@router.get("/stats", response_class=HTMLResponse)
def admin_stats(store: CatalogFeedbackStore = Depends(get_store)):
    try:
        stats = store.feedback_statistics()
    except Exception as e:
        logger.exception("loading feedback statistics failed")
        raise HTTPException(status_code=500, detail=str(e))
    # 作品数量只是附加信息，失败时显示 0
    try:
        catalog_count = store.count_catalog_items()
    except StoreError:
        logger.exception("counting catalog items failed")
        catalog_count = 0
    return render(
        "admin_stats.html",
        page_title="Админка - Статистика",
        stats=stats,
        catalog_count=catalog_count,
        server_time=datetime.now().strftime("%d.%m.%Y %H:%M:%S"),
    )
