from fastapi import Request

from ..repository import CatalogFeedbackStore


def get_store(request: Request) -> CatalogFeedbackStore:
    return request.app.state.store
