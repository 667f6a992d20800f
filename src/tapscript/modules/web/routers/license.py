"""
授权状态 API
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...executor.service import script_service


router = APIRouter(prefix="/api/license", tags=["license"])


class LicenseRenew(BaseModel):
    expires_at: Optional[datetime] = None
    hours: Optional[float] = Field(default=None, gt=0)


@router.get("")
async def get_license():
    return script_service.license.status()


@router.post("/renew")
async def renew_license(body: LicenseRenew):
    duration = timedelta(hours=body.hours) if body.hours is not None else None
    try:
        script_service.license.renew(expires_at=body.expires_at, duration=duration)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return script_service.license.status()
