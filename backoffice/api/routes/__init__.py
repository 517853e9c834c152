"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from backoffice.api.routes.attribute_routes import router as attribute_router
from backoffice.api.routes.user_type_routes import router as user_type_router
from backoffice.api.routes.data_routes import router as data_router
from backoffice.api.routes.profile_routes import collaborator_router, agency_router
from backoffice.api.routes.job_routes import router as job_router
from backoffice.api.routes.news_routes import router as news_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(attribute_router)
api_router.include_router(user_type_router)
api_router.include_router(data_router)
api_router.include_router(collaborator_router)
api_router.include_router(agency_router)
api_router.include_router(job_router)
api_router.include_router(news_router)
