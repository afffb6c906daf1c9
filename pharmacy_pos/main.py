"""
Pharmacy POS Application

Point-of-sale backend for a pharmacy: catalog, checkout sessions and the
sale commit sequence, plus inventory alerts and sales reports.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

from .core.config import settings
from .dependencies import close_services
from .routes import catalog_router, checkout_router, reports_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Pharmacy POS starting up...")
    logger.info(f"Record store backend: {settings.record_store_backend}")
    logger.info(f"Supabase configured: {settings.supabase_configured}")

    yield

    logger.info("Pharmacy POS shutting down...")
    await close_services()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Point-of-sale backend for pharmacy inventory and sales",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(catalog_router)
app.include_router(checkout_router)
app.include_router(reports_router)


@app.get("/")
async def home():
    return {
        "message": "Pharmacy POS API",
        "docs": "/docs",
        "endpoints": {
            "catalog": "/api/catalog",
            "checkout": "/api/checkout",
            "reports": "/api/reports/sales",
            "sales": "/api/sales",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "pharmacy-pos",
        "record_store": settings.record_store_backend,
        "supabase_configured": settings.supabase_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pharmacy_pos.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
