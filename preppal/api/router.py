from fastapi import APIRouter

from preppal.api.routes.auth import router as auth_router
from preppal.api.routes.dashboard import router as dashboard_router
from preppal.api.routes.sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(sessions_router)
api_router.include_router(dashboard_router)
