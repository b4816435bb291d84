"""Request-scoped access to the store owned by the application"""
from fastapi import Request

from gift_redemption.database import GiftStore


def get_store(request: Request) -> GiftStore:
    return request.app.state.store
