from fastapi import APIRouter

from . import admin, auth, exchange


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(exchange.router, tags=["exchange"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
