"""
Settings API routes.

Settings are pre-seeded key-value pairs. Only updates are allowed.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.settings import (
    SettingUpdate,
    SettingResponse,
    BusinessSettings,
)
from services.settings_service import get_settings_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=BusinessSettings)
async def get_business_settings():
    """
    Decoded business settings (defaults for keys not stored).

    Raises:
        422: A stored setting has an unknown data type
    """
    try:
        return get_settings_service().get_business_settings()
    except Exception as e:
        return handle_error(e)


@router.get("/raw", response_model=list[SettingResponse])
async def list_settings():
    """Stored setting rows ordered by key."""
    try:
        return get_settings_service().get_all()
    except Exception as e:
        return handle_error(e)


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(key: str):
    """
    Get setting by key.

    Raises:
        404: Setting not found
    """
    try:
        return get_settings_service().get_by_key(key)
    except Exception as e:
        return handle_error(e)


@router.patch("/{key}", response_model=SettingResponse)
async def update_setting(key: str, data: SettingUpdate):
    """
    Update setting value.

    Raises:
        404: Setting not found
        422: Value does not match the setting's data type
    """
    try:
        return get_settings_service().update(key, data)
    except Exception as e:
        return handle_error(e)
