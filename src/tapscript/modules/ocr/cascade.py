"""
区域识别级联

对一个屏幕区域按代价递增的顺序逐级尝试：
- baseline: 规范化后的原图
- enhanced: 固定放大 + 增强链（二值化 -> 腐蚀 -> 膨胀 -> 锐化）
- scale_<f>x: 按比例缩放原图后再走增强链（不做固定放大）

第一个提取出值且满足比较条件的阶段即为成功；全部失败时返回最后一个
识别到但不满足条件的值。每次调用恰好返回一个结果，不向外抛异常。
"""
from __future__ import annotations

import itertools
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol, Tuple

import cv2  # type: ignore
import numpy as np

from ...core import constants as C
from ...core.config import settings
from ...core.constants import Comparison
from ...core.logger import logger
from ...core.thread_pool import run_in_compute, run_in_emulator_io
from ..vision import enhance
from ..vision.utils import ImageLike, normalize_buffer
from .extract import compare, extract_value
from .types import (
    RecognitionFailure,
    RecognitionOutcome,
    RecognitionSuccess,
    StageResult,
    Target,
)


class TextDetector(Protocol):
    def detect_text(self, image: np.ndarray) -> str: ...


class RegionCapture(Protocol):
    def capture_region(self, rect: Any) -> Any: ...


@dataclass
class CascadeConfig:
    scale_factors: Tuple[float, ...] = tuple(C.OCR_SCALE_FACTORS)
    binarize_ratio: float = C.OCR_BINARIZE_RATIO
    upscale_target_width: int = C.OCR_UPSCALE_TARGET_WIDTH
    upscale_target_height: int = C.OCR_UPSCALE_TARGET_HEIGHT
    upscale_min_factor: float = C.OCR_UPSCALE_MIN_FACTOR
    equals_tolerance: float = 0.0
    debug_dir: str = ""

    @classmethod
    def from_settings(cls) -> "CascadeConfig":
        return cls(
            scale_factors=tuple(settings.ocr_scale_factors),
            binarize_ratio=settings.ocr_binarize_ratio,
            upscale_target_width=settings.ocr_upscale_target_width,
            upscale_target_height=settings.ocr_upscale_target_height,
            upscale_min_factor=settings.ocr_upscale_min_factor,
            equals_tolerance=settings.ocr_equals_tolerance,
            debug_dir=settings.ocr_debug_dir,
        )


Stage = Tuple[str, Callable[[np.ndarray], np.ndarray]]


def _format_factor(factor: float) -> str:
    return f"{factor:g}"


class RecognitionCascade:
    """区域 OCR 识别级联。

    Args:
        device: 提供 capture_region(rect)，可选 io_key 用于设备 I/O 串行化
        detector: 提供 detect_text(image) -> str
        config: 级联参数，缺省从 settings 读取
    """

    def __init__(
        self,
        device: Optional[RegionCapture],
        detector: TextDetector,
        config: Optional[CascadeConfig] = None,
    ) -> None:
        self.device = device
        self.detector = detector
        self.config = config or CascadeConfig.from_settings()
        self._log = logger.bind(module="RecognitionCascade")
        self._debug_seq = itertools.count(1)

    # ── 阶段定义 ──

    def _enhance(self, image: np.ndarray) -> np.ndarray:
        return enhance.enhance_for_ocr(image, self.config.binarize_ratio)

    def _upscale_and_enhance(self, image: np.ndarray) -> np.ndarray:
        upscaled = enhance.upscale_for_ocr(
            image,
            target_width=self.config.upscale_target_width,
            target_height=self.config.upscale_target_height,
            min_factor=self.config.upscale_min_factor,
        )
        return self._enhance(upscaled)

    def _scaled_stage(self, factor: float) -> Callable[[np.ndarray], np.ndarray]:
        def _run(image: np.ndarray) -> np.ndarray:
            return self._enhance(enhance.scale(image, factor))
        return _run

    def stages(self) -> List[Stage]:
        result: List[Stage] = [
            ("baseline", lambda image: image),
            ("enhanced", self._upscale_and_enhance),
        ]
        for factor in self.config.scale_factors:
            result.append((f"scale_{_format_factor(factor)}x", self._scaled_stage(factor)))
        return result

    # ── 单阶段执行（同步，运行在计算线程池） ──

    def run_stage(
        self,
        stage: Stage,
        image: np.ndarray,
        target: Target,
        comparison: Comparison,
        debug_tag: str = "",
    ) -> StageResult:
        name, transform = stage
        try:
            prepared = transform(image)
            self._dump_debug(debug_tag, name, prepared)
            text = self.detector.detect_text(prepared) or ""
        except Exception as e:
            self._log.warning("识别阶段 {} 失败: {}", name, e)
            return StageResult(stage=name, text="", error=str(e))

        value = extract_value(text, comparison)
        matched = value is not None and compare(
            value,
            target,
            comparison,
            tolerance=self.config.equals_tolerance,
        )
        self._log.debug("阶段 {} 识别文本={!r} 值={!r} 匹配={}", name, text, value, matched)
        return StageResult(stage=name, text=text, value=value, matched=matched)

    # ── 结果汇总 ──

    def _failure(
        self,
        results: List[StageResult],
        target: Target,
        comparison: Comparison,
    ) -> RecognitionFailure:
        last_value = None
        for r in results:
            if r.value is not None:
                last_value = r.value
        if last_value is None:
            reason = f"no usable text recognized after {len(results)} stages"
        else:
            reason = (
                f"recognized {last_value!r}, does not satisfy "
                f"{comparison.value} {target!r}"
            )
        self._log.info("区域识别未匹配: {}", reason)
        return RecognitionFailure(reason=reason, last_value=last_value, stages=results)

    def _success(self, result: StageResult) -> RecognitionSuccess:
        self._log.info("区域识别成功: 阶段={} 值={!r}", result.stage, result.value)
        return RecognitionSuccess(value=result.value, stage=result.stage, text=result.text)

    def recognize_image(
        self,
        image: ImageLike,
        target: Target,
        comparison: Comparison,
    ) -> RecognitionOutcome:
        """对已截取的区域图像同步执行整条级联。"""
        try:
            normalized = normalize_buffer(image)
        except (ValueError, TypeError, FileNotFoundError) as e:
            return RecognitionFailure(reason=f"invalid image: {e}")

        tag = self._new_debug_tag()
        results: List[StageResult] = []
        for stage in self.stages():
            result = self.run_stage(stage, normalized, target, comparison, tag)
            results.append(result)
            if result.matched:
                return self._success(result)
        return self._failure(results, target, comparison)

    async def recognize(
        self,
        region: Any,
        target: Target,
        comparison: Comparison,
    ) -> RecognitionOutcome:
        """截取 region 并逐级识别；各阶段串行，在计算线程池执行。"""
        if self.device is None:
            return RecognitionFailure(reason="capture failed: no capture device configured")

        io_key = getattr(self.device, "io_key", "")
        try:
            raw = await run_in_emulator_io(io_key, self.device.capture_region, region)
        except Exception as e:
            self._log.error("区域截图失败: {}", e)
            return RecognitionFailure(reason=f"capture failed: {e}")

        try:
            normalized = await run_in_compute(normalize_buffer, raw)
        except (ValueError, TypeError, FileNotFoundError) as e:
            self._log.error("截图数据无法解析: {}", e)
            return RecognitionFailure(reason=f"capture failed: {e}")

        tag = self._new_debug_tag()
        results: List[StageResult] = []
        for stage in self.stages():
            result = await run_in_compute(
                self.run_stage, stage, normalized, target, comparison, tag
            )
            results.append(result)
            if result.matched:
                return self._success(result)
        return self._failure(results, target, comparison)

    # ── 调试图像 ──

    def _new_debug_tag(self) -> str:
        if not self.config.debug_dir:
            return ""
        return f"{datetime.now():%Y%m%d_%H%M%S}_{next(self._debug_seq):04d}"

    def _dump_debug(self, tag: str, stage: str, image: np.ndarray) -> None:
        if not self.config.debug_dir or not tag:
            return
        try:
            os.makedirs(self.config.debug_dir, exist_ok=True)
            path = os.path.join(self.config.debug_dir, f"{tag}_{stage}.png")
            if not cv2.imwrite(path, image):
                self._log.warning("调试图像保存失败: {}", path)
        except (OSError, cv2.error) as e:
            self._log.warning("调试图像保存失败: {}", e)


__all__ = [
    "CascadeConfig",
    "RecognitionCascade",
    "RegionCapture",
    "TextDetector",
]
