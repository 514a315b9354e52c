"""
hrdash - attendance & leave gateway for the HR dashboard
"""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from hrdash.api.router import api_router
from hrdash.core.config import settings
from hrdash.core.errors import (
    generic_exception_handler,
    hrdash_error_handler,
    http_exception_handler,
    validation_exception_handler,
)
from hrdash.core.exceptions import HrdashError
from hrdash.core.logging import setup_logging

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title="hrdash",
    description="Geofenced attendance and leave approval gateway in front of the HR API",
    version=settings.VERSION or "1.0.0"
)

# Configure CORS - must be before other middleware
origins = settings.get_allowed_origins_list()
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(HrdashError, hrdash_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log the upstream HR API and business timezone so deployments can be verified."""
    logger.info("HR API base URL: %s", settings.HR_API_BASE_URL)
    logger.info("Business timezone: %s, env: %s", settings.APP_TIMEZONE, settings.APP_ENV)
