"""
脚本执行状态 / 停止 API
"""
from fastapi import APIRouter

from ...executor.service import script_service


router = APIRouter(prefix="/api/runner", tags=["runner"])


@router.get("/status")
async def get_runner_status():
    return script_service.status()


@router.post("/stop")
async def stop_runner():
    return {"stopped": script_service.stop()}
