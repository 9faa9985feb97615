import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.bootstrap import bootstrap_app
from app.core.config import settings
from app.core.models import (
    RepositoryError,
    UserNotFoundError,
    DuplicateEmailError,
    RoleNotFoundError,
    InvalidFilterError,
    StoreFailureError,
    OperationCanceledError,
)
from app.core.schemas import ApiResponse
from app.db import db_manager
from app.db.seed import seed_roles

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    RoleNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    InvalidFilterError: status.HTTP_400_BAD_REQUEST,
    OperationCanceledError: status.HTTP_504_GATEWAY_TIMEOUT,
    StoreFailureError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events, making sure the
    connection pool is released on shutdown.
    """
    logger.info("Starting application...")

    if settings.DB_CREATE_ALL:
        logger.info("Creating tables and seeding roles...")
        await db_manager.create_all()
        async with db_manager.async_session_factory() as session:
            await seed_roles(session)

    yield

    logger.info("Shutting down application...")
    logger.info("Disconnecting database pool...")
    await db_manager.disconnect()
    logger.info("Database pool disconnected.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    version=settings.VERSION,
    lifespan=lifespan,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc"
    )


@app.exception_handler(RepositoryError)
async def repository_exception_handler(request: Request, exc: RepositoryError):
    """Translate data-access errors into HTTP responses without leaking internals."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"[{request.method}] {request.url.path} failed: {exc.message}")

    response = ApiResponse(status_code=status_code, error=exc.__class__.__name__, detail=exc.message)
    return JSONResponse(status_code=status_code, content=response.model_dump())


bootstrap_app(app)


# Health check endpoint (useful for monitoring)
@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0",
                port=8000,
                log_level="info"
        )
