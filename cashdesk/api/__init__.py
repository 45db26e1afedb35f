from fastapi import APIRouter

from cashdesk.interfaces.http.routers import (
    admin,
    auth,
    cash_sessions,
    finalizations,
    health,
    payment_methods,
    second_factor,
)


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(second_factor.router, prefix="/second-factor", tags=["second factor"])
    router.include_router(payment_methods.router, prefix="/payment-methods", tags=["payment methods"])
    router.include_router(cash_sessions.router, prefix="/cash-sessions", tags=["cash sessions"])
    router.include_router(finalizations.router, prefix="/finalizations", tags=["finalizations"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    router.include_router(health.router, tags=["health"])
    return router


__all__ = [
    "create_api_router",
]
