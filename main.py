from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import uvicorn

from config.settings import settings
from core.database import engine, Base
from core.exceptions import InventoryPlatformError
from api.routes import auth, inventory, uploads, analysis
from modules.inventory.schemas import first_error_message
from utils.ai_gateway import close_extraction_gateway

# Import all models to ensure they are registered with SQLAlchemy
from modules.users.models import User
from modules.inventory.models import InventoryItem

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger("inventory_platform")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} v{settings.VERSION}")

    logger.info("📁 Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables ready")

    logger.info(f"📁 Object storage: {settings.bucket_directory.absolute()}")
    if not settings.AI_GATEWAY_API_KEY:
        logger.warning("⚠️  AI_GATEWAY_API_KEY is not set; photo analysis will fail until it is configured")
    logger.info("✅ Application ready")

    yield

    # Shutdown
    close_extraction_gateway()
    logger.info(f"👋 Shutting down {settings.PROJECT_NAME}...")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Photo and manual inventory documentation for insurance claims",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware; bearer tokens only, so no credentialed requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(InventoryPlatformError)
async def platform_error_handler(request: Request, exc: InventoryPlatformError):
    if exc.status_code >= 500:
        logger.error(f"Error in {request.url.path}: {exc.message}")
    else:
        logger.info(f"Rejected {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"detail": first_error_message(exc.errors())})

# Include routers
app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["authentication"])
app.include_router(inventory.router, prefix=settings.API_PREFIX, tags=["inventory"])
app.include_router(uploads.router, prefix=settings.API_PREFIX, tags=["uploads"])
app.include_router(analysis.router, prefix=settings.API_PREFIX, tags=["analysis"])

# Serve uploaded images
app.mount("/storage", StaticFiles(directory=str(settings.storage_directory)), name="storage")

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "database": engine.dialect.name
    }

@app.get("/config")
async def get_config():
    """Get application configuration (safe version without secrets)"""
    return settings.to_dict()

@app.get("/api")
async def api_info():
    """API information endpoint"""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "endpoints": {
            "authentication": f"{settings.API_PREFIX}/auth",
            "inventory": f"{settings.API_PREFIX}/inventory",
            "inventory_stats": f"{settings.API_PREFIX}/inventory/stats",
            "uploads": f"{settings.API_PREFIX}/uploads",
            "analyze_items": f"{settings.API_PREFIX}/analyze-items"
        },
        "documentation": "/docs"
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
