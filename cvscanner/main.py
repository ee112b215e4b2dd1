from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cvscanner.routers import match, scanner
from cvscanner.models.settings import get_settings

# Import logging and middleware
from cvscanner.utils.logging_config import configure_for_environment, get_logger
from cvscanner.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    validation_exception_handler,
)

VERSION = "1.0.0"

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("CV Scanner API starting up...")
    settings = get_settings()
    if not settings.api_key:
        logger.warning("GEMINI_API_KEY is not set - match and scan requests will fail until it is configured")
    logger.info(
        f"Models: generation={settings.llm_settings.model_name}, "
        f"embedding={settings.embedding_settings.model_name}"
    )

    yield

    logger.info("CV Scanner API shutting down...")


app = FastAPI(title="CV Scanner API", version=VERSION, lifespan=lifespan)

# Exception handler sits innermost so the others only ever see responses
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(PerformanceMiddleware, slow_request_threshold=10.0)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests"""
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the CV Scanner API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(match.router, prefix="/api", tags=["match"])
app.include_router(scanner.router, prefix="/api", tags=["scanner"])

logger.info("CV Scanner API initialized successfully")
