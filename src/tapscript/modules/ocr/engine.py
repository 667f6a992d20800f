"""PaddleOCR 引擎管理（懒加载 + 线程安全）。"""
from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import List

import numpy as np

from ...core.config import settings
from ...core.logger import logger
from .types import OcrBox, OcrResult

# ── 在导入 PaddleOCR 之前设置环境变量，防止自动下载模型 ──
_ocr_dir = str(Path(settings.ocr_model_dir).resolve())
os.environ.setdefault('PADDLEX_HOME', _ocr_dir)
os.environ.setdefault('PPOCR_HOME', _ocr_dir)
os.environ.setdefault('PADDLE_PDX_DISABLE_MODEL_SOURCE_CHECK', 'True')

_ocr_instance = None
_ocr_lock = threading.Lock()
# 推理锁：PaddleOCR predict() 非线程安全，多线程并发调用需串行化
_ocr_infer_lock = threading.Lock()


def get_ocr_engine():
    """获取 PaddleOCR 单例。

    首次调用时初始化引擎（约 3-5 秒），后续调用直接返回缓存实例。
    线程安全（双检锁）。
    """
    global _ocr_instance
    if _ocr_instance is not None:
        return _ocr_instance

    with _ocr_lock:
        if _ocr_instance is not None:
            return _ocr_instance

        logger.info(
            "正在初始化 PaddleOCR (lang={})...",
            settings.paddle_ocr_lang,
        )
        try:
            from paddleocr import PaddleOCR  # noqa: delay import
        except ImportError as e:
            logger.error(f"PaddleOCR 导入失败，请安装 ocr 可选依赖: {e}")
            raise

        try:
            _ocr_instance = PaddleOCR(
                use_textline_orientation=False,
                use_doc_orientation_classify=False,
                use_doc_unwarping=False,
                lang=settings.paddle_ocr_lang,
                device="cpu",
            )
        except Exception as e:
            logger.error(f"PaddleOCR 初始化失败: {e}")
            raise
        logger.info("PaddleOCR 初始化完成")
        return _ocr_instance


def ocr(
    image: np.ndarray,
    *,
    min_confidence: float | None = None,
    engine=None,
) -> OcrResult:
    """对图像执行 OCR 识别，过滤低置信度结果。"""
    threshold = settings.ocr_min_confidence if min_confidence is None else min_confidence
    engine = engine or get_ocr_engine()

    # PaddleOCR 3.x: predict() 接受 BGR ndarray，返回 OCRResult 列表
    with _ocr_infer_lock:
        results = engine.predict(image)

    boxes: List[OcrBox] = []
    if results:
        result = results[0]
        rec_texts = result["rec_texts"]
        rec_scores = result["rec_scores"]
        rec_polys = result["rec_polys"]
        for text, confidence, poly in zip(rec_texts, rec_scores, rec_polys):
            if confidence < threshold:
                continue
            boxes.append(OcrBox(
                text=text,
                confidence=float(confidence),
                box=[(int(p[0]), int(p[1])) for p in poly],
            ))

    return OcrResult(boxes=boxes)


class PaddleTextDetector:
    """detect_text(image) -> str 能力的 PaddleOCR 实现，无文字时返回空串。"""

    def __init__(self, min_confidence: float | None = None, engine=None) -> None:
        self.min_confidence = min_confidence
        self._engine = engine

    def detect_text(self, image: np.ndarray) -> str:
        return ocr(image, min_confidence=self.min_confidence, engine=self._engine).text
