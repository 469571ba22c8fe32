"""Objective Documents FastAPI application."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..errors import DocumentStoreError
from .routers import workspaces, objectives, sessions, documents

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("objdoc-core")

# Error classification -> HTTP status
STATUS_BY_CODE = {
    "validation": 400,
    "not_found": 404,
    "conflict": 409,
    "database": 503,
}

logger.info("Starting Objective Documents API")

# Create FastAPI app
app = FastAPI(
    title="Objective Documents API",
    description="Versioned documents for workspace objectives",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DocumentStoreError)
async def document_store_error_handler(request: Request, exc: DocumentStoreError):
    """Map classified lifecycle errors onto HTTP responses."""
    status_code = STATUS_BY_CODE.get(exc.code, 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests with the same body shape as lifecycle errors."""
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"code": "validation", "detail": detail})


# Include all business logic routers with /api/v1 prefix
app.include_router(workspaces.router, prefix="/api/v1/workspaces")
app.include_router(objectives.router, prefix="/api/v1/objectives")
app.include_router(sessions.router, prefix="/api/v1/sessions")
app.include_router(documents.router, prefix="/api/v1")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "Objective Documents API",
        "version": "1.0.0",
        "docs": "/docs",
        "description": "Versioned documents for workspace objectives",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
