from .types import (
    OcrBox,
    OcrResult,
    RecognitionFailure,
    RecognitionOutcome,
    RecognitionSuccess,
    StageResult,
)
from .extract import compare, correct_ocr_errors, extract_number, is_valid_number
from .engine import PaddleTextDetector, get_ocr_engine, ocr
from .cascade import CascadeConfig, RecognitionCascade

__all__ = [
    "OcrBox",
    "OcrResult",
    "RecognitionFailure",
    "RecognitionOutcome",
    "RecognitionSuccess",
    "StageResult",
    "compare",
    "correct_ocr_errors",
    "extract_number",
    "is_valid_number",
    "PaddleTextDetector",
    "get_ocr_engine",
    "ocr",
    "CascadeConfig",
    "RecognitionCascade",
]
