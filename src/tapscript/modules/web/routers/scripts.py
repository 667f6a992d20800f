"""
脚本管理 API
"""
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ....core.logger import logger
from ...executor.service import script_service
from ...executor.types import Script
from ...storage.script_store import ScriptStoreError


router = APIRouter(prefix="/api/scripts", tags=["scripts"])


def _store_error(e: ScriptStoreError) -> HTTPException:
    logger.error(f"脚本存储异常: {e}")
    return HTTPException(status_code=500, detail=str(e))


@router.get("")
async def list_scripts() -> Dict[str, Any]:
    store = script_service.store
    try:
        scripts = store.load_all()
        selected = store.selected_id()
    except ScriptStoreError as e:
        raise _store_error(e)
    return {
        "scripts": [s.model_dump(mode="json") for s in scripts],
        "selected_script_id": selected,
    }


@router.get("/{script_id}")
async def get_script(script_id: str) -> Dict[str, Any]:
    try:
        script = script_service.store.get(script_id)
    except ScriptStoreError as e:
        raise _store_error(e)
    if script is None:
        raise HTTPException(status_code=404, detail="脚本不存在")
    return script.model_dump(mode="json")


@router.post("")
async def save_script(script: Script) -> Dict[str, Any]:
    """新增或按 id 覆盖脚本。"""
    try:
        saved = script_service.store.save(script)
    except ScriptStoreError as e:
        raise _store_error(e)
    return saved.model_dump(mode="json")


@router.delete("/{script_id}")
async def delete_script(script_id: str) -> Dict[str, Any]:
    try:
        deleted = script_service.store.delete(script_id)
    except ScriptStoreError as e:
        raise _store_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="脚本不存在")
    return {"deleted": script_id}


@router.post("/{script_id}/select")
async def select_script(script_id: str) -> Dict[str, Any]:
    store = script_service.store
    try:
        if store.get(script_id) is None:
            raise HTTPException(status_code=404, detail="脚本不存在")
        store.select(script_id)
    except ScriptStoreError as e:
        raise _store_error(e)
    return {"selected_script_id": script_id}


@router.post("/{script_id}/run")
async def run_script(script_id: str) -> Dict[str, Any]:
    try:
        result = await script_service.run(script_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="脚本不存在")
    except ScriptStoreError as e:
        raise _store_error(e)
    if not result.get("accepted"):
        raise HTTPException(status_code=409, detail=result)
    return result
