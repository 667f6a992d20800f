"""OCR 识别结果数据结构。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

Target = Union[float, str]


@dataclass
class OcrBox:
    """单个 OCR 识别结果。"""

    text: str
    confidence: float
    # 边界框四点坐标 [(x1,y1), (x2,y2), (x3,y3), (x4,y4)]，相对于输入图像
    box: List[Tuple[int, int]] = field(default_factory=list)


@dataclass
class OcrResult:
    """OCR 识别结果集合。"""

    boxes: List[OcrBox]

    @property
    def text(self) -> str:
        """所有识别文本拼接（换行分隔）。"""
        return "\n".join(b.text for b in self.boxes)

    def find(self, keyword: str) -> Optional[OcrBox]:
        """查找包含指定关键词的第一个结果。"""
        for b in self.boxes:
            if keyword in b.text:
                return b
        return None


@dataclass
class StageResult:
    """级联中单个阶段的识别记录。"""

    stage: str
    text: str
    value: Optional[Target] = None
    matched: bool = False
    error: Optional[str] = None


@dataclass
class RecognitionSuccess:
    value: Target
    stage: str
    text: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass
class RecognitionFailure:
    reason: str
    last_value: Optional[Target] = None
    stages: List[StageResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False


RecognitionOutcome = Union[RecognitionSuccess, RecognitionFailure]
