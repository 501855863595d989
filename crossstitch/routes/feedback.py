from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import RedirectResponse

from ..logs import LogContext
from ..models import FeedbackSubmission
from ..repository import CatalogFeedbackStore
from .deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/feedback")
def submit_feedback(
    name: str = Form(""),
    email: str = Form(""),
    description: str = Form(""),
    store: CatalogFeedbackStore = Depends(get_store),
):
    log = LogContext("FEEDBACK_SUBMIT")
    log.set_payload({"name": name, "email": email})
    try:
        body = FeedbackSubmission(name=name, email=email, description=description)
    except ValueError as ve:
        log.write("REJECTED", str(ve))
        raise HTTPException(status_code=400, detail="Все поля обязательны для заполнения")
    try:
        store.save_feedback(body.name, body.email, body.description)
    except Exception as e:
        logger.exception("saving feedback failed")
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Ошибка сохранения отзыва")
    log.write("OK")
    return RedirectResponse(url="/contacts?success=true", status_code=303)
