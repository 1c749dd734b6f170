import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import engine, get_db
from .models.base import Base
from .core.middleware import ExceptionHandlingMiddleware, register_exception_handlers
from .schemas.result import Result, Error, ErrorCategory

# Import routes
from .api.v1 import auth, user, communities, polls, potlucks, suggestions, questions, calendar

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="HOABoard API - Community management for homeowners associations",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Add exception handling middleware FIRST
app.add_middleware(ExceptionHandlingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"]
)
app.include_router(user.router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(
    communities.router,
    prefix=f"{settings.API_V1_STR}/communities",
    tags=["communities"]
)

# Community-scoped features share the /communities/{community_id} prefix
for feature, tag in (
    (polls, "polls"),
    (potlucks, "potlucks"),
    (suggestions, "suggestions"),
    (questions, "questions"),
    (calendar, "calendar"),
):
    app.include_router(
        feature.router,
        prefix=f"{settings.API_V1_STR}/communities",
        tags=[tag]
    )


@app.get("/", response_model=Result[dict])
async def root():
    """Root endpoint with API information"""
    return Result.successful(
        data={
            "message": f"Welcome to {settings.PROJECT_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs",
            "status": "online",
        }
    )


@app.get("/health", response_model=Result[dict])
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for monitoring"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        error = Error(
            message="Health check failed: database unavailable",
            status_code=503,
            category=ErrorCategory.INTERNAL,
        )
        return JSONResponse(status_code=503, content=Result.failure(error).model_dump(mode="json"))
    return Result.successful(data={"status": "healthy", "database": "connected"})
