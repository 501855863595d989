from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from ..rendering import render
from ..repository import CatalogFeedbackStore
from .deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def home(store: CatalogFeedbackStore = Depends(get_store)):
    try:
        works = store.list_featured_catalog_items()
    except Exception as e:
        logger.exception("loading featured works failed")
        raise HTTPException(status_code=500, detail=str(e))
    return render("index.html", page_title="Главная", works=works)


@router.get("/catalog", response_class=HTMLResponse)
def catalog(store: CatalogFeedbackStore = Depends(get_store)):
    try:
        works = store.list_all_catalog_items()
    except Exception as e:
        logger.exception("loading catalog failed")
        raise HTTPException(status_code=500, detail=str(e))
    return render("catalog.html", page_title="Каталог", works=works)


@router.get("/about", response_class=HTMLResponse)
def about():
    return render("about.html", page_title="О нас")


@router.get("/contacts", response_class=HTMLResponse)
def contacts(success: str | None = None):
    return render("contacts.html", page_title="Контакты", success=success == "true")
