"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Wires the bot context (stores, Telegram client, lookup client)
- Registers API routes (webhook, health)
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.db.memory import InMemoryAccountStore, InMemoryFlowStore
from app.db.mongo import (
    connect_to_mongo,
    close_mongo_connection,
    check_database_health,
    get_users_collection,
    get_flows_collection,
)
from app.db.indexes import create_indexes
from app.db.store import MongoAccountStore, MongoFlowStore
from app.flow.dispatcher import build_bot
from app.services.lookup_service import LookupClient
from app.services.telegram_service import TelegramService
from app.api import webhook

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


async def _create_stores():
    if settings.STORE_BACKEND == "memory":
        logger.warning("⚠️ Using in-memory store, data is lost on restart")
        return InMemoryAccountStore(), InMemoryFlowStore()
    
    logger.info("Connecting to MongoDB...")
    await connect_to_mongo()
    await create_indexes()
    return (
        MongoAccountStore(get_users_collection()),
        MongoFlowStore(get_flows_collection()),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("🚀 Starting lookup bot...")
    
    try:
        validate_settings()
        logger.info("✅ Configuration validated")
        
        account_store, flow_store = await _create_stores()
        
        telegram = TelegramService(
            settings.BOT_TOKEN,
            api_base=settings.TELEGRAM_API_BASE,
            timeout=settings.TELEGRAM_TIMEOUT,
        )
        lookup = LookupClient(settings.LOOKUP_API_URL, timeout=settings.LOOKUP_TIMEOUT)
        
        app.state.bot = build_bot(settings, account_store, flow_store, telegram, lookup)
        
        logger.info("🎉 Lookup bot started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Admins configured: {len(settings.admin_ids)}")
        
    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise
    
    yield  # Application runs here
    
    logger.info("🛑 Shutting down lookup bot...")
    
    try:
        await telegram.close()
        await lookup.close()
        await close_mongo_connection()
        logger.info("👋 Lookup bot shut down successfully")
        
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="Lookup Bot",
    description="Telegram bot with credit-metered phone number lookups",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

add_exception_handlers(app)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    
    # Lookups can take up to the lookup timeout; anything beyond is suspicious
    if process_time > settings.LOOKUP_TIMEOUT + 5:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path} ({process_time:.1f}s)"
        )
    
    return response


app.include_router(webhook.router, prefix=settings.API_PREFIX, tags=["Webhook"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "Lookup Bot",
        "version": "1.0.0",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Checks database connectivity when MongoDB is the store.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "checks": {}
    }
    
    if settings.STORE_BACKEND == "mongo":
        db_healthy = await check_database_health()
        health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
        if not db_healthy:
            health_status["status"] = "unhealthy"
    else:
        health_status["checks"]["database"] = "memory"
    
    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
