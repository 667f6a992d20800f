"""从 OCR 文本中提取数字，以及识别结果与目标值的比较。

提取顺序：
1. 去除空白后依次尝试 整数 / 小数 / 数字+单位
2. 按易混淆字符表修正（先多字符再单字符），修正后再试一次 整数 / 小数
3. 在原文中查找第一个内嵌数字串

任何情况下都不抛异常，失败返回 None。
"""
from __future__ import annotations

import math
import re
from typing import Optional, Tuple, Union

from ...core import constants as C
from ...core.constants import Comparison
from ...core.logger import logger

_WHITESPACE = re.compile(r"\s+")
_WHOLE = re.compile(r"^[-+]?\d+$")
_THOUSANDS = re.compile(r"^[-+]?\d{1,3}(?:,\d{3})+$")
_DECIMAL = re.compile(r"^[-+]?\d+[.,]\d+$")
_WITH_UNIT = re.compile(r"^([-+]?\d+(?:[.,]\d+)?)[a-zA-Z%]*$")
_EMBEDDED = re.compile(r"[-+]?\d+(?:[.,]\d+)?")

# 多字符条目必须先于单字符条目应用，否则 "ze" 会先被拆成 "2e"
OCR_CORRECTIONS: Tuple[Tuple[str, str], ...] = (
    ("th", "29"),
    ("TH", "29"),
    ("Th", "29"),
    ("tH", "29"),
    ("zg", "29"),
    ("2g", "29"),
    ("z9", "29"),
    ("Ze", "28"),
    ("ze", "28"),
    ("ZB", "28"),
    ("zb", "28"),
    ("O", "0"),
    ("o", "0"),
    ("I", "1"),
    ("l", "1"),
    ("S", "5"),
    ("s", "5"),
    ("Z", "2"),
    ("z", "2"),
    ("B", "8"),
    ("g", "9"),
)


def is_valid_number(value: Optional[float]) -> bool:
    """有限且在 [-999999999, 999999999] 范围内。"""
    if value is None:
        return False
    return math.isfinite(value) and C.NUMBER_MIN <= value <= C.NUMBER_MAX


def correct_ocr_errors(text: str) -> str:
    corrected = text
    for wrong, right in OCR_CORRECTIONS:
        corrected = corrected.replace(wrong, right)
    return corrected


def _to_float(number: str) -> Optional[float]:
    try:
        value = float(number.replace(",", "."))
    except ValueError:
        return None
    return value if is_valid_number(value) else None


def _parse_plain(text: str) -> Optional[float]:
    """整数或小数（整串匹配）。"""
    if _WHOLE.match(text):
        return _to_float(text)
    if _THOUSANDS.match(text):
        return _to_float(text.replace(",", ""))
    if _DECIMAL.match(text):
        return _to_float(text)
    return None


def extract_number(text: Optional[str]) -> Optional[float]:
    """从识别文本中提取数字。"""
    if not text:
        return None
    clean = _WHITESPACE.sub("", text)
    if not clean:
        return None

    value = _parse_plain(clean)
    if value is not None:
        return value

    m = _WITH_UNIT.match(clean)
    if m:
        value = _to_float(m.group(1))
        if value is not None:
            return value

    corrected = correct_ocr_errors(clean)
    if corrected != clean:
        value = _parse_plain(corrected)
        if value is not None:
            logger.debug("OCR 纠错: '{}' -> '{}' -> {}", clean, corrected, value)
            return value

    m = _EMBEDDED.search(clean)
    if m:
        return _to_float(m.group(0))
    return None


def compare(
    recognized: Union[float, str],
    target: Union[float, str],
    comparison: Comparison,
    *,
    tolerance: float = 0.0,
) -> bool:
    """recognized 是否满足 comparison(target)。

    数字比较只接受数字，CONTAINS 只接受文本；类型不匹配返回 False。
    """
    if comparison is Comparison.CONTAINS:
        if not isinstance(recognized, str) or not isinstance(target, str):
            return False
        return target.lower() in recognized.lower()

    if isinstance(recognized, str) or isinstance(target, str):
        return False
    if comparison is Comparison.LESS_THAN:
        return recognized < target
    if comparison is Comparison.EQUALS:
        if tolerance > 0:
            return abs(recognized - target) <= tolerance
        return recognized == target
    return False


def extract_value(
    text: str,
    comparison: Comparison,
) -> Optional[Union[float, str]]:
    """按比较方式取出可比较的值：数字比较取数字，CONTAINS 取去掉首尾空白的原文。"""
    if comparison.is_numeric:
        return extract_number(text)
    stripped = (text or "").strip()
    return stripped or None


__all__ = [
    "OCR_CORRECTIONS",
    "is_valid_number",
    "correct_ocr_errors",
    "extract_number",
    "extract_value",
    "compare",
]
