"""
脚本存储

JSON 文件：{"selected_script_id": ..., "scripts": [...]}
- 通过文件修改时间检测变更，未修改时直接使用缓存
- 写入先落临时文件再替换，避免写一半的文件
- 兼容旧格式：scripts 为 events 列表（type=CLICK/SWIPE/WAIT/OCR + params），
  比较方式为 小于/等于/包含
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ...core.config import settings
from ...core.constants import Comparison, ExecutionMode
from ...core.logger import logger
from ..executor.types import Script


class ScriptStoreError(RuntimeError):
    pass


class ScriptDocument(BaseModel):
    selected_script_id: Optional[str] = None
    scripts: List[Script] = Field(default_factory=list)


_document_adapter: TypeAdapter = TypeAdapter(ScriptDocument)

_LEGACY_COMPARISONS = {
    "小于": Comparison.LESS_THAN,
    "等于": Comparison.EQUALS,
    "包含": Comparison.CONTAINS,
}


def _num(params: Dict[str, Any], key: str, default: float = 0) -> int:
    value = params.get(key, default)
    if value is None:
        value = default
    return int(round(float(value)))


def _legacy_step(event: Dict[str, Any]) -> Dict[str, Any]:
    kind = str(event.get("type", "")).upper()
    params = event.get("params") or {}
    if kind == "CLICK":
        return {"type": "click", "x": _num(params, "x"), "y": _num(params, "y")}
    if kind == "SWIPE":
        return {
            "type": "swipe",
            "x1": _num(params, "startX"),
            "y1": _num(params, "startY"),
            "x2": _num(params, "endX"),
            "y2": _num(params, "endY"),
        }
    if kind == "WAIT":
        return {"type": "wait", "duration_ms": _num(params, "duration", 1000)}
    if kind == "OCR":
        raw_cmp = params.get("comparisonType") or "小于"
        comparison = _LEGACY_COMPARISONS.get(raw_cmp)
        if comparison is None:
            comparison = Comparison(raw_cmp)
        if comparison is Comparison.CONTAINS:
            target: Any = params.get("targetText") or ""
        else:
            target = float(params.get("targetNumber") or 0.0)
        return {
            "type": "recognize",
            "region": {
                "left": _num(params, "left"),
                "top": _num(params, "top"),
                "right": _num(params, "right"),
                "bottom": _num(params, "bottom"),
            },
            "target": target,
            "comparison": comparison.value,
        }
    raise ValueError(f"unknown legacy event type: {event.get('type')!r}")


def _legacy_script(data: Dict[str, Any]) -> Dict[str, Any]:
    mode = str(data.get("executionMode", "ONCE")).lower()
    if mode not in (ExecutionMode.ONCE.value, ExecutionMode.REPEAT.value):
        mode = ExecutionMode.ONCE.value
    return {
        "id": str(data.get("id")),
        "name": data.get("name") or str(data.get("id")),
        "mode": mode,
        "steps": [_legacy_step(e) for e in data.get("events") or []],
    }


def upgrade_document(raw: Any) -> Dict[str, Any]:
    """把旧格式（顶层列表或 events 结构）转换为当前文档结构。"""
    if isinstance(raw, list):
        raw = {"selected_script_id": None, "scripts": raw}
    if not isinstance(raw, dict):
        raise ValueError("script document must be an object or a list")
    scripts = []
    for item in raw.get("scripts") or []:
        if isinstance(item, dict) and "events" in item and "steps" not in item:
            scripts.append(_legacy_script(item))
        else:
            scripts.append(item)
    selected = raw.get("selected_script_id")
    return {
        "selected_script_id": str(selected) if selected is not None else None,
        "scripts": scripts,
    }


@dataclass
class _CacheEntry:
    document: ScriptDocument
    mtime: int


class ScriptStore:
    """脚本 JSON 存储（线程安全）"""

    def __init__(self, path: str | os.PathLike) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._cache: Optional[_CacheEntry] = None
        self._log = logger.bind(module="ScriptStore")

    @classmethod
    def from_settings(cls) -> "ScriptStore":
        return cls(settings.scripts_path)

    @property
    def path(self) -> Path:
        return self._path

    # ── 读写 ──

    def _read(self) -> ScriptDocument:
        if not self._path.exists():
            return ScriptDocument()

        mtime = os.stat(self._path).st_mtime_ns
        if self._cache and self._cache.mtime == mtime:
            return self._cache.document.model_copy(deep=True)

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            document = _document_adapter.validate_python(upgrade_document(raw))
        except (OSError, json.JSONDecodeError) as e:
            raise ScriptStoreError(f"failed to read scripts from {self._path}: {e}") from e
        except (ValidationError, ValueError) as e:
            raise ScriptStoreError(f"invalid script file {self._path}: {e}") from e

        self._cache = _CacheEntry(document=document, mtime=mtime)
        self._log.info("脚本文件已加载: {} (共 {} 个脚本)", self._path, len(document.scripts))
        return document.model_copy(deep=True)

    def _write(self, document: ScriptDocument) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = _document_adapter.dump_json(document, indent=2)
        fd, tmp = tempfile.mkstemp(prefix=".scripts-", suffix=".tmp", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp, self._path)
        except OSError as e:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise ScriptStoreError(f"failed to write scripts to {self._path}: {e}") from e
        self._cache = _CacheEntry(
            document=document.model_copy(deep=True),
            mtime=os.stat(self._path).st_mtime_ns,
        )

    # ── 脚本 CRUD ──

    def load_all(self) -> List[Script]:
        with self._lock:
            return self._read().scripts

    def get(self, script_id: str) -> Optional[Script]:
        with self._lock:
            for script in self._read().scripts:
                if script.id == script_id:
                    return script
            return None

    def find_by_name(self, name: str) -> Optional[Script]:
        with self._lock:
            for script in self._read().scripts:
                if script.name == name:
                    return script
            return None

    def save(self, script: Script) -> Script:
        """按 id 新增或覆盖。"""
        with self._lock:
            document = self._read()
            for i, existing in enumerate(document.scripts):
                if existing.id == script.id:
                    document.scripts[i] = script
                    break
            else:
                document.scripts.append(script)
            self._write(document)
        self._log.info("脚本已保存: {} ({})", script.name, script.id)
        return script

    def save_all(self, scripts: List[Script]) -> None:
        with self._lock:
            document = self._read()
            document.scripts = list(scripts)
            ids = {s.id for s in scripts}
            if document.selected_script_id not in ids:
                document.selected_script_id = None
            self._write(document)

    def delete(self, script_id: str) -> bool:
        with self._lock:
            document = self._read()
            remaining = [s for s in document.scripts if s.id != script_id]
            if len(remaining) == len(document.scripts):
                return False
            document.scripts = remaining
            if document.selected_script_id == script_id:
                document.selected_script_id = None
            self._write(document)
        self._log.info("脚本已删除: {}", script_id)
        return True

    # ── 当前选中脚本 ──

    def selected_id(self) -> Optional[str]:
        with self._lock:
            return self._read().selected_script_id

    def get_selected(self) -> Optional[Script]:
        with self._lock:
            selected = self.selected_id()
            return self.get(selected) if selected else None

    def select(self, script_id: Optional[str]) -> None:
        """选中脚本；传 None 清除选中。"""
        with self._lock:
            document = self._read()
            if script_id is not None and all(s.id != script_id for s in document.scripts):
                raise ScriptStoreError(f"script not found: {script_id}")
            document.selected_script_id = script_id
            self._write(document)
