"""
设备适配器：把 ADB 操作包装成执行引擎需要的手势/截图能力

接口：
- ensure_running() -> bool
- tap(x, y) -> bool
- swipe(x1, y1, x2, y2, dur_ms) -> bool
- capture() -> bytes
- capture_ndarray() -> np.ndarray
- capture_region(rect) -> np.ndarray  (失败抛 CaptureError)

手势失败不抛异常，返回 False 交给执行引擎判定。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from ...core.config import settings
from ...core.logger import logger
from ..vision.utils import crop_rect, normalize_buffer
from .adb import Adb, AdbError


class CaptureError(Exception):
    """截图异常"""
    pass


@dataclass
class AdapterConfig:
    adb_path: str
    adb_addr: str
    swipe_duration_ms: int = 500

    @classmethod
    def from_settings(cls) -> "AdapterConfig":
        return cls(
            adb_path=settings.adb_path,
            adb_addr=settings.adb_addr,
            swipe_duration_ms=settings.swipe_duration_ms,
        )


class EmulatorAdapter:
    def __init__(self, cfg: AdapterConfig, adb: Adb | None = None) -> None:
        self.cfg = cfg
        self.adb = adb or Adb(cfg.adb_path)
        self._log = logger.bind(module="EmulatorAdapter")

    @property
    def io_key(self) -> str:
        """同一设备的 I/O 串行化键。"""
        return self.cfg.adb_addr

    def ensure_running(self) -> bool:
        try:
            if self.adb.get_state(self.cfg.adb_addr) == "device":
                return True
            return self.adb.connect(self.cfg.adb_addr)
        except AdbError as e:
            self._log.warning("ADB 连接失败: {}", e)
            return False

    def tap(self, x: int, y: int) -> bool:
        try:
            self.adb.tap(self.cfg.adb_addr, x, y)
        except AdbError as e:
            self._log.error("点击失败 ({}, {}): {}", x, y, e)
            return False
        return True

    def swipe(self, x1: int, y1: int, x2: int, y2: int, dur_ms: int | None = None) -> bool:
        duration = self.cfg.swipe_duration_ms if dur_ms is None else dur_ms
        try:
            self.adb.swipe(self.cfg.adb_addr, x1, y1, x2, y2, duration)
        except AdbError as e:
            self._log.error("滑动失败 ({}, {}) -> ({}, {}): {}", x1, y1, x2, y2, e)
            return False
        return True

    def capture(self) -> bytes:
        try:
            return self.adb.screencap(self.cfg.adb_addr)
        except AdbError as e:
            raise CaptureError(f"截图失败: {e}") from e

    def capture_ndarray(self) -> np.ndarray:
        data = self.capture()
        try:
            return normalize_buffer(data)
        except ValueError as e:
            raise CaptureError(f"截图解码失败: {e}") from e

    def capture_region(self, rect: Any) -> np.ndarray:
        """截取整屏后裁剪出 rect 区域（绝对坐标）。"""
        screen = self.capture_ndarray()
        try:
            return crop_rect(screen, rect)
        except ValueError as e:
            raise CaptureError(str(e)) from e
