"""
ScriptRunService: 控制接口背后的运行服务

- 把 ADB 适配器、识别级联、授权组装成一个执行器（首次运行时才创建，避免启动时加载 OCR 模型）
- 每次运行用 RunRecorder 记录回调事件，供状态接口查询
"""
from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from ...core.constants import Comparison, ErrorKind
from ...core.logger import logger
from ...core.thread_pool import run_in_emulator_io
from ...core.timeutils import now_utc
from ..emu.adapter import AdapterConfig, EmulatorAdapter
from ..ocr.cascade import RecognitionCascade
from ..ocr.engine import PaddleTextDetector
from ..storage.script_store import ScriptStore
from .callback import ExecutionCallback
from .license import ExpiringLicense
from .script_executor import ScriptExecutor
from .types import Script, Step


class RunRecorder(ExecutionCallback):
    """记录一次运行的回调事件（线程安全，保留最近 max_events 条）"""

    def __init__(self, script: Script, max_events: int = 200) -> None:
        self.script_id = script.id
        self.script_name = script.name
        self.outcome: Optional[str] = None
        self.last_error: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        self.steps_done = 0
        self.recognition_misses = 0
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def _record(self, event: str, **detail: Any) -> None:
        with self._lock:
            self._events.append({"time": now_utc().isoformat(), "event": event, **detail})

    def events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def on_start(self) -> None:
        self._record("start")

    def on_complete(self) -> None:
        self.outcome = "completed"
        self._record("complete")

    def on_stopped(self) -> None:
        self.outcome = "stopped"
        self._record("stopped")

    def on_error(self, reason: str) -> None:
        self.outcome = "error"
        self.last_error = reason
        self.error_kind = ErrorKind.classify(reason)
        self._record("error", reason=reason, kind=self.error_kind.value)

    def on_step_done(self, step: Step, index: int) -> None:
        self.steps_done += 1
        self._record("step_done", index=index, step=step.type)

    def on_number_match(self, recognized: float, target: float, comparison: Comparison) -> None:
        self._record("number_match", recognized=recognized, target=target, comparison=comparison.value)

    def on_text_match(self, recognized: str, target: str, comparison: Comparison) -> None:
        self._record("text_match", recognized=recognized, target=target, comparison=comparison.value)

    def on_token_invalid(self) -> None:
        self._record("token_invalid")

    def on_recognition_miss(self, step: Step, index: int, reason: str) -> None:
        self.recognition_misses += 1
        self._record("recognition_miss", index=index, reason=reason)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "script_id": self.script_id,
            "script_name": self.script_name,
            "outcome": self.outcome,
            "last_error": self.last_error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "steps_done": self.steps_done,
            "recognition_misses": self.recognition_misses,
            "events": self.events(),
        }


class ScriptRunService:
    def __init__(
        self,
        store: Optional[ScriptStore] = None,
        license: Optional[ExpiringLicense] = None,
        executor: Optional[ScriptExecutor] = None,
    ) -> None:
        self.store = store or ScriptStore.from_settings()
        self.license = license or ExpiringLicense.from_settings()
        self._executor = executor
        self._adapter: Optional[EmulatorAdapter] = None
        self._recorder: Optional[RunRecorder] = None
        self._lock = threading.Lock()
        self._log = logger.bind(module="ScriptRunService")

    def _ensure_executor(self) -> ScriptExecutor:
        with self._lock:
            if self._executor is None:
                self._adapter = EmulatorAdapter(AdapterConfig.from_settings())
                cascade = RecognitionCascade(self._adapter, PaddleTextDetector())
                self._executor = ScriptExecutor(self._adapter, cascade, self.license)
                self._log.info("执行器已创建: 设备={}", self._adapter.io_key)
            return self._executor

    @property
    def executor(self) -> Optional[ScriptExecutor]:
        return self._executor

    async def run(self, script_id: str) -> Dict[str, Any]:
        """启动脚本；脚本不存在时抛 LookupError。"""
        script = self.store.get(script_id)
        if script is None:
            raise LookupError(f"script not found: {script_id}")

        executor = self._ensure_executor()
        if self._adapter is not None and not executor.is_running:
            connected = await run_in_emulator_io(self._adapter.io_key, self._adapter.ensure_running)
            if not connected:
                self._log.warning("设备未连接: {}", self._adapter.io_key)

        recorder = RunRecorder(script)
        task = executor.execute(script, recorder)
        if task is None:
            return {
                "accepted": False,
                "error": recorder.last_error,
                "error_kind": recorder.error_kind.value if recorder.error_kind else None,
            }

        self._recorder = recorder
        return {"accepted": True, "script_id": script.id, "script_name": script.name}

    def stop(self) -> bool:
        executor = self._executor
        if executor is None or not executor.is_running:
            return False
        executor.stop()
        return True

    def status(self) -> Dict[str, Any]:
        executor = self._executor
        recorder = self._recorder
        return {
            "running": bool(executor and executor.is_running),
            "repeating": bool(executor and executor.is_repeating),
            "state": executor.state.value if executor else "idle",
            "last_run": recorder.snapshot() if recorder else None,
        }

    def shutdown(self) -> None:
        if self.stop():
            self._log.info("服务关闭，已停止正在执行的脚本")


# 全局服务实例
script_service = ScriptRunService()
