# estimator/api/router.py
from fastapi import APIRouter

from estimator.core.config import get_settings
from estimator.api import materials as materials_api
from estimator.api import jobs as jobs_api
from estimator.api import clients as clients_api
from estimator.api import projects as projects_api

api_router = APIRouter()
settings = get_settings()

@api_router.get("/health", tags=["health"])
async def health_check():
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": "0.1.0",
        "service": settings.PROJECT_NAME,
    }

api_router.include_router(materials_api.router)
api_router.include_router(jobs_api.router)
api_router.include_router(clients_api.router)
api_router.include_router(projects_api.router)
