"""
脚本执行引擎

按顺序逐步执行脚本：
- Click / Swipe: 下发手势后等待界面稳定；手势失败终止本次运行
- Wait: 等待指定时长
- Recognize: 交给识别级联；未匹配只报告，不终止运行
REPEAT 模式在一轮结束后间隔一段时间从第一步重新开始，直到 stop()。

同一进程同一时刻只允许一个脚本运行（RunCoordinator）。每次运行只会收到
一个终止回调，由加锁的 running -> 结束 状态切换保证。
"""
from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ...core import constants as C
from ...core.config import settings
from ...core.constants import ErrorKind, ExecutionMode, RunState
from ...core.logger import logger
from ...core.thread_pool import run_in_emulator_io
from ..ocr.types import RecognitionSuccess
from .callback import ExecutionCallback
from .coordinator import RunCoordinator, run_coordinator
from .license import LicenseGate
from .types import (
    ClickStep,
    GestureDevice,
    RecognizeStep,
    RegionRecognizer,
    Script,
    Step,
    SwipeStep,
    WaitStep,
)


@dataclass
class ExecutionTimings:
    click_settle_ms: int = C.CLICK_SETTLE_MS
    swipe_settle_ms: int = C.SWIPE_SETTLE_MS
    swipe_duration_ms: int = C.SWIPE_DURATION_MS
    repeat_interval_ms: int = C.REPEAT_INTERVAL_MS

    @classmethod
    def from_settings(cls) -> "ExecutionTimings":
        return cls(
            click_settle_ms=settings.click_settle_ms,
            swipe_settle_ms=settings.swipe_settle_ms,
            swipe_duration_ms=settings.swipe_duration_ms,
            repeat_interval_ms=settings.repeat_interval_ms,
        )


async def _sleep_ms(ms: int) -> None:
    await asyncio.sleep(max(0, ms) / 1000.0)


class ScriptExecutor:
    def __init__(
        self,
        device: GestureDevice,
        recognizer: RegionRecognizer,
        license: LicenseGate,
        *,
        coordinator: Optional[RunCoordinator] = None,
        timings: Optional[ExecutionTimings] = None,
    ) -> None:
        self.device = device
        self.recognizer = recognizer
        self.license = license
        self.coordinator = coordinator or run_coordinator
        self.timings = timings or ExecutionTimings.from_settings()

        self._lock = threading.Lock()
        self._running = False
        self._repeating = False
        self._state = RunState.IDLE
        self._run_id = 0
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._callback: Optional[ExecutionCallback] = None
        self._log = logger.bind(module="ScriptExecutor")

    # ── 状态 ──

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def is_repeating(self) -> bool:
        with self._lock:
            return self._repeating

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    def _is_current(self, run_id: int) -> bool:
        with self._lock:
            return self._running and self._run_id == run_id

    def _finish(self, run_id: int, state: RunState) -> bool:
        """running -> state；只有第一个调用者成功，返回 True 的一方负责发终止回调。"""
        with self._lock:
            if not self._running or self._run_id != run_id:
                return False
            self._running = False
            self._repeating = False
            self._state = state
            self._task = None
        self.coordinator.release(self)
        return True

    # ── 对外接口 ──

    def execute(self, script: Script, callback: ExecutionCallback) -> Optional[asyncio.Task]:
        """开始执行脚本，须在事件循环中调用。被拒绝时返回 None。"""
        # 无运行中的事件循环时直接抛出，此时尚未占用任何状态
        loop = asyncio.get_running_loop()

        if not self.license.is_valid():
            self._log.warning("授权无效，拒绝执行脚本: {}", script.name)
            callback.on_token_invalid()
            callback.on_error(C.ERROR_LICENSE_INVALID)
            return None

        if self.coordinator.is_running():
            busy_self = self.coordinator.owner() is self
            self._log.warning("已有脚本在执行，拒绝执行脚本: {}", script.name)
            callback.on_error(C.ERROR_EXECUTOR_BUSY if busy_self else C.ERROR_ANOTHER_SCRIPT_RUNNING)
            return None

        if self.is_running:
            callback.on_error(C.ERROR_EXECUTOR_BUSY)
            return None

        if not self.coordinator.try_acquire(self):
            callback.on_error(C.ERROR_ANOTHER_SCRIPT_RUNNING)
            return None

        steps: List[Step] = list(script.steps)
        with self._lock:
            self._run_id += 1
            run_id = self._run_id
            self._running = True
            self._repeating = script.mode is ExecutionMode.REPEAT
            self._state = RunState.RUNNING
            self._loop = loop
            self._callback = callback

        self._log.info(
            "开始执行脚本: {} (步骤数={}, 模式={})",
            script.name,
            len(steps),
            script.mode.value,
        )
        self.license.touch_activity()
        callback.on_start()

        task = loop.create_task(self._run(run_id, steps, script.mode, callback))
        with self._lock:
            if self._run_id == run_id and self._running:
                self._task = task
        return task

    def stop(self) -> None:
        """停止当前运行；可在任意线程调用，重复调用无副作用。"""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._repeating = False
            self._state = RunState.STOPPED
            task, loop, callback = self._task, self._loop, self._callback
            self._task = None
        self.coordinator.release(self)

        if task is not None and loop is not None and not task.done():
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError as e:
                # 事件循环已关闭
                self._log.warning("取消执行任务失败: {}", e)

        self._log.info("脚本执行已停止")
        if callback is not None:
            callback.on_stopped()

    # ── 执行循环 ──

    async def _run(
        self,
        run_id: int,
        steps: List[Step],
        mode: ExecutionMode,
        callback: ExecutionCallback,
    ) -> None:
        index = 0
        try:
            while self._is_current(run_id):
                if not self.license.is_valid():
                    if self._finish(run_id, RunState.ERRORED):
                        self._log.warning("执行过程中授权失效，脚本已停止")
                        callback.on_token_invalid()
                        callback.on_error(C.ERROR_LICENSE_EXPIRED_DURING_RUN)
                    return

                if index >= len(steps):
                    if mode is ExecutionMode.REPEAT:
                        await _sleep_ms(self.timings.repeat_interval_ms)
                        index = 0
                        continue
                    if self._finish(run_id, RunState.COMPLETED):
                        self._log.info("脚本执行完成")
                        callback.on_complete()
                    return

                step = steps[index]
                ok = await self._execute_step(run_id, step, index, callback)
                if not self._is_current(run_id):
                    return
                if not ok:
                    if self._finish(run_id, RunState.ERRORED):
                        self._log.error("步骤 {} ({}) 执行失败", index, step.label)
                        callback.on_error(ErrorKind.STEP_FAILED.reason(step.label))
                    return
                index += 1
        except asyncio.CancelledError:
            self._log.debug("执行任务已取消")
        except Exception as e:
            self._log.exception("脚本执行异常: {}", e)
            if self._finish(run_id, RunState.ERRORED):
                callback.on_error(ErrorKind.EXECUTION_ERROR.reason(str(e)))

    async def _execute_step(
        self,
        run_id: int,
        step: Step,
        index: int,
        callback: ExecutionCallback,
    ) -> bool:
        """执行单步；返回 False 表示致命失败。"""
        if isinstance(step, ClickStep):
            ok = await self._gesture(self.device.tap, step.x, step.y)
            await _sleep_ms(self.timings.click_settle_ms)
        elif isinstance(step, SwipeStep):
            ok = await self._gesture(
                self.device.swipe,
                step.x1,
                step.y1,
                step.x2,
                step.y2,
                self.timings.swipe_duration_ms,
            )
            await _sleep_ms(self.timings.swipe_settle_ms)
        elif isinstance(step, WaitStep):
            await _sleep_ms(step.duration_ms)
            ok = True
        elif isinstance(step, RecognizeStep):
            await self._recognize(run_id, step, index, callback)
            ok = True
        else:
            raise TypeError(f"unsupported step: {step!r}")

        if not ok or not self._is_current(run_id):
            return ok
        callback.on_step_done(step, index)
        return True

    async def _gesture(self, func: Callable[..., Any], *args: Any) -> bool:
        io_key = getattr(self.device, "io_key", "")
        try:
            result = await run_in_emulator_io(io_key, func, *args)
        except Exception as e:
            self._log.error("手势执行异常: {}", e)
            return False
        return bool(result)

    async def _recognize(
        self,
        run_id: int,
        step: RecognizeStep,
        index: int,
        callback: ExecutionCallback,
    ) -> None:
        try:
            outcome = await self.recognizer.recognize(step.region, step.target, step.comparison)
        except Exception as e:
            self._log.error("区域识别异常: {}", e)
            if self._is_current(run_id):
                callback.on_recognition_miss(step, index, f"recognition error: {e}")
            return

        if not self._is_current(run_id):
            return
        if isinstance(outcome, RecognitionSuccess):
            if step.comparison.is_numeric:
                callback.on_number_match(outcome.value, step.target, step.comparison)
            else:
                callback.on_text_match(outcome.value, step.target, step.comparison)
            return

        reason = getattr(outcome, "reason", "recognition failed")
        self._log.info("步骤 {} 识别未匹配，继续执行: {}", index, reason)
        callback.on_recognition_miss(step, index, reason)
