"""
Talent Back Office - Main Application

FastAPI backend with:
- MongoDB for attributes, user types, profiles, jobs and news
- Dynamic attribute & user type engine driving profile forms and validation
- JWT verification for tokens issued by the platform's auth service

Run: uvicorn backoffice.main:app --reload
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.api.routes import api_router
from backoffice.core.config import get_settings
from backoffice.core.errors import BackofficeError, StructuralError
from backoffice.core.logging_config import configure_logging
from backoffice.db.mongodb import init_mongo_indexes, test_mongo_connection
from backoffice.services.option_dictionary import get_option_dictionary
from backoffice.services.seed_service import seed_catalogue

settings = get_settings()
configure_logging(settings.log_level)

# Create FastAPI app
app = FastAPI(
    title="Talent Back Office",
    description="""
    Back office for a talent marketplace.

    ## Features
    - **Attributes**: reusable field definitions with typed options
    - **User Types**: profile schemas composed from attributes
    - **Profiles**: collaborators and agencies validated against their user type
    - **Forms**: render descriptors and rules generated per user type
    - **Jobs** and **News**: postings and announcements
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# ============================================================
# ERROR HANDLERS - every error body is {"message": ...}
# ============================================================

@app.exception_handler(BackofficeError)
async def backoffice_error_handler(request: Request, exc: BackofficeError):
    if isinstance(exc, StructuralError):
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": "Profile configuration is inconsistent; contact an administrator"}
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header"))
    message = f"{location}: {error['msg']}" if location else error["msg"]
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes and the global option lists on startup."""
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning(f"MongoDB index initialization failed: {e}")

    get_option_dictionary().load()

    if settings.seed_on_startup:
        seed_catalogue()


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    mongo_ok = test_mongo_connection()
    return {
        "status": "healthy" if mongo_ok else "degraded",
        "mongodb": "connected" if mongo_ok else "disconnected",
        "optionLists": get_option_dictionary().is_loaded
    }
