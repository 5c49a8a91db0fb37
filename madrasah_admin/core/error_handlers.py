from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from .exceptions import MadrasahAdminException

logger = logging.getLogger(__name__)

async def madrasah_exception_handler(request: Request, exc: MadrasahAdminException):
    """Handle application exceptions raised by services and dependencies"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    else:
        logger.warning(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )
