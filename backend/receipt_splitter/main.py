"""
FastAPI application entry point for the Receipt Splitter backend.

This module initializes the FastAPI app with middleware, CORS, logging,
exception handlers and external API clients, and registers all routers.
"""

import logging
from contextlib import asynccontextmanager

import httpx
import openai
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from receipt_splitter import __version__
from receipt_splitter.config import settings
from receipt_splitter.core.exceptions import register_exception_handlers
from receipt_splitter.database import init_db
from receipt_splitter.limiter import limiter
from receipt_splitter.routers import auth, receipts, users
from receipt_splitter.services.llm_service import ReceiptStructurer
from receipt_splitter.services.ocr_service import VisionOCRClient

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Initializing database...")
    init_db()

    http_client = httpx.Client(timeout=settings.OCR_TIMEOUT)
    app.state.ocr_client = VisionOCRClient(
        http_client, api_key=settings.GOOGLE_API_KEY, endpoint=settings.VISION_API_URL
    )

    openai_client = None
    if settings.OPENAI_API_KEY:
        openai_client = openai.OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.LLM_TIMEOUT,
            max_retries=0,
        )
    else:
        logger.warning("OPENAI_API_KEY is not set; /receipts/parse will fail")
    app.state.structurer = ReceiptStructurer(openai_client, model=settings.OPENAI_MODEL)

    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; login and protected routes will return 500")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    http_client.close()
    if openai_client is not None:
        openai_client.close()


# Create FastAPI app
app = FastAPI(
    title="Receipt Splitter API",
    description="Register, log in, parse receipt photos and store receipts",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter
register_exception_handlers(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# Add GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Register routers
app.include_router(auth.router, tags=["auth"])
app.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
app.include_router(users.router, prefix="/users", tags=["users"])


@app.get("/")
async def root():
    """Root endpoint for health check."""
    return {"message": "Receipt Splitter API", "status": "running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "receipt_splitter.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
