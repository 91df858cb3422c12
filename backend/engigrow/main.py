import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from engigrow.core.config import settings
from engigrow.core.database import engine, Base
from engigrow.core.logging_config import setup_logging
from engigrow.api.error_handlers import register_error_handlers
from engigrow.api.routes import auth, collaboration, posts

# Configure logging before anything below logs
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create tables for all models that inherit from Base
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="EngiGrow API",
    description="Student collaboration feed: posts, comments, likes and project partner requests",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware - allows the frontend to make requests to the backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors become structured {"error": ...} responses
register_error_handlers(app)

app.include_router(auth.router)
app.include_router(posts.router)
app.include_router(collaboration.router)


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {"message": "EngiGrow API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint - used by monitoring/deployment tools"""
    return {"status": "healthy"}
