from fastapi import APIRouter

from dreamxi.api.v1.routes import health, teams

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
