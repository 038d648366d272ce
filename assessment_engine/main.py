"""
Main FastAPI application
Quiz sessions, grading, analytics and certificate eligibility
"""
from fastapi import Depends, FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
import time

from assessment_engine.config import settings
from assessment_engine.database import get_db, init_db
from assessment_engine.api import analytics, attempts, certificates, grading
from assessment_engine.exceptions import AssessmentError
from assessment_engine.utils.attempt_timer import attempt_timers
from assessment_engine.utils.cache import cache_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Assessment engine: quiz attempts, grading, analytics and certificate eligibility",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )

    return response


# Engine errors (not found, validation, conflict, upstream, not eligible)
@app.exception_handler(AssessmentError)
async def assessment_exception_handler(request: Request, exc: AssessmentError):
    """Render expected engine failures with their status code"""

    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    else:
        logger.info(f"{exc.error_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "detail": exc.detail
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""

    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


# HTTP exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Format HTTP exceptions consistently"""

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": exc.detail,
            "detail": None
        }
    )


# Health check endpoint
@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Liveness plus dependency status

    The database is required; the quiz cache is optional, so a disabled
    cache does not make the service unhealthy.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {str(e)}")
        database = "unavailable"

    return JSONResponse(
        status_code=200 if database == "ok" else 503,
        content={
            "status": "healthy" if database == "ok" else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "database": database,
            "quiz_cache": "enabled" if cache_service.enabled else "disabled",
            "pending_attempt_timers": attempt_timers.pending_count(),
            "timestamp": time.time()
        }
    )


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Assessment Engine API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(attempts.router)
app.include_router(grading.router)
app.include_router(analytics.router)
app.include_router(certificates.router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cancel pending attempt timers; deadlines are still enforced on the next request"""
    cancelled = attempt_timers.cancel_all()
    logger.info(f"Shutting down application ({cancelled} attempt timers cancelled)")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "assessment_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
