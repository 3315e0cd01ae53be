from fastapi import APIRouter

from contractgen.api.v1.endpoints import contracts, templates, versions

api_router = APIRouter()
api_router.include_router(contracts.router, prefix="/contracts", tags=["contracts"])
api_router.include_router(versions.router, prefix="/versions", tags=["versions"])
api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
