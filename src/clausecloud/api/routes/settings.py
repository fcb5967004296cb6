"""
Company settings routes.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body

from clausecloud.models.api import (
    RedLinesResponse,
    RedLinesUpdateRequest,
    SettingsResponse,
    SettingsUpdateResponse,
)
from clausecloud.storage.settings_store import get_settings_store

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def get_company_settings() -> SettingsResponse:
    """
    Get the current company settings.
    """
    settings = get_settings_store().get()
    return SettingsResponse(settings=settings.model_dump(by_alias=True, mode="json"))


@router.put("", response_model=SettingsUpdateResponse)
async def update_company_settings(
    updates: dict[str, Any] = Body(...),
) -> SettingsUpdateResponse:
    """
    Merge top-level keys into the company settings.
    """
    settings = get_settings_store().update(updates)
    return SettingsUpdateResponse(
        message="Settings updated successfully",
        settings=settings.model_dump(by_alias=True, mode="json"),
    )


@router.put("/red-lines", response_model=RedLinesResponse)
async def update_red_lines(request: RedLinesUpdateRequest) -> RedLinesResponse:
    """
    Replace the red-line list.
    """
    red_lines = get_settings_store().replace_red_lines(request.red_lines)
    return RedLinesResponse(
        message="Red lines updated successfully",
        red_lines=[rl.model_dump(mode="json") for rl in red_lines],
    )
