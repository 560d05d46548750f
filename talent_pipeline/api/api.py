from fastapi import APIRouter
from talent_pipeline.api.endpoints import health, partners, clients, applications

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])

# Resource endpoints
api_router.include_router(partners.router, prefix="/partners", tags=["partners"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
