"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .accounts.router import router as accounts_router
from .accounts.models import Base  # Import all models here for creating tables
from .accounts.service import purge_expired_tokens
from .database import engine, SessionLocal
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

# Sweep tokens that expired while the service was down
logger.info("Starting Account Service API...")
db = SessionLocal()
try:
    purge_expired_tokens(db)
except Exception as e:
    logger.error(f"Expired token sweep failed: {str(e)}")
finally:
    db.close()

# Create FastAPI application
app = FastAPI(
    title="Account Service API",
    description="Registration, email verification, sign-in and password reset",
    version=API_VERSION
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
origins = [
    settings.frontend_url,
    "http://localhost:3000",  # Frontend development server
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(accounts_router)

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Account Service API", "version": API_VERSION}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
