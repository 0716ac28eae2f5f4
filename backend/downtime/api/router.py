from fastapi import APIRouter

from downtime.api.routes import dashboard, imports

api_router = APIRouter()

api_router.include_router(imports.router, prefix="/import", tags=["import"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
