from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.cache import cache_manager
from .core.config import settings
from .core.database import close_db_connections
from .core.error_handlers import general_exception_handler, madrasah_exception_handler
from .core.exceptions import MadrasahAdminException
from .core.logging import setup_logging

from .routers import access, backups, functions, health

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Madrasah Admin API ({settings.environment})")
    if cache_manager.enabled:
        await cache_manager.connect()
        logger.info("Redis connected; tenant locks are distributed")
    else:
        logger.info("Redis not configured; tenant locks are process-local")

    yield

    logger.info("Shutting down Madrasah Admin API")
    await cache_manager.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")

app = FastAPI(
    title="Madrasah Admin API",
    description="Multi-tenant madrasah administration: role-based access control and tenant backup/restore",
    version=settings.app_version,
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_exception_handler(MadrasahAdminException, madrasah_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(health.router)
app.include_router(functions.router)
app.include_router(backups.router)
app.include_router(access.router)

@app.get("/")
async def root():
    return {
        "message": "Madrasah Admin API",
        "version": settings.app_version,
        "features": ["Multi-tenant", "Role-based access control", "Backup and restore", "Scheduled backups"],
        "status": "active"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
