"""API routers."""

from agrirent.routers.accounts import router as accounts_router
from agrirent.routers.auth import router as auth_router

__all__ = ["auth_router", "accounts_router"]
