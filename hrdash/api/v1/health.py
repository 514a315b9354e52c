"""
Health check endpoint
"""
from fastapi import APIRouter
from hrdash.core.constants import SERVICE_NAME

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint

    Returns service status. Does not call the HR API.
    """
    return {
        "status": "ok",
        "service": SERVICE_NAME,
    }
