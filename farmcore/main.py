"""
FastAPI application entry point.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from farmcore.config import settings
from farmcore.api.dependencies import get_container
from farmcore.api.rate_limit import limiter
from farmcore.api.v1.routers import advisory, fields, scans
from farmcore.infrastructure.external_api_client import close_clients
from farmcore.middleware.error_handler import ErrorHandlerMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def log_drain_result(task: asyncio.Task) -> None:
    """Report the outcome of the startup queue drain."""
    if task.cancelled():
        logger.info("Startup queue drain cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Startup queue drain failed: {error}", exc_info=error)
        return
    report = task.result()
    logger.info(f"Startup queue drain: {len(report.delivered)} delivered, "
                f"{len(report.requeued)} requeued, {len(report.dropped)} dropped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    
    Delivers any scans left in the offline queue at startup and closes the
    HTTP clients on shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Quota timezone: {settings.reference_timezone}, "
                f"queue retries: {settings.max_queue_retries}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")
    
    container = get_container()
    drain_task = asyncio.create_task(container.queue.drain_queue())
    drain_task.add_done_callback(log_drain_result)
    
    yield
    
    # Shutdown
    logger.info("Shutting down application...")
    if not drain_task.done():
        drain_task.cancel()
        with suppress(asyncio.CancelledError):
            await drain_task
    await close_clients()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Spray Advisory & Scan Submission API for the farmer mobile app
    
    ## Features
    
    - **Single field**: one registered plot whose location drives the advisory
    - **Spray window**: Good / Caution / Don't spray from the next 12 forecast
      hours, with the next good window
    - **Daily leaf scan**: one scan per civil day, queued while offline and
      reconciled when connectivity returns
    - **Robust Error Handling**: Automatic retries with exponential backoff for external
      API calls
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(fields.router, prefix="/api/v1")
app.include_router(advisory.router, prefix="/api/v1")
app.include_router(scans.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.
    
    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
