"""
API routers.

``api_router`` carries every JSON endpoint under ``/api``; the display
pages and websockets are mounted at the application root.
"""

from fastapi import APIRouter

from qrmenu.api import auth, branches, displays, languages, menu, orders, public, settings, users

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(branches.router)
api_router.include_router(menu.router)
api_router.include_router(languages.router)
api_router.include_router(orders.router)
api_router.include_router(settings.router)
api_router.include_router(public.router)

display_router = APIRouter()
display_router.include_router(displays.router)
display_router.include_router(orders.ws_router)

__all__ = ["api_router", "display_router"]
