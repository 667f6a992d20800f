"""
Image enhancement transforms for OCR.

All functions are pure: they take a uint8 image and return a new array,
never modifying the input. Binary images use 0 for ink (dark strokes) and
255 for background, so ``erode``/``dilate`` are defined on the ink.
"""
from __future__ import annotations

from typing import Tuple

import cv2  # type: ignore
import numpy as np

from ...core import constants as C

_KERNEL_3X3 = np.ones((3, 3), dtype=np.uint8)

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def luminance(img: np.ndarray) -> np.ndarray:
    """Per-pixel brightness as the integer mean of the colour channels."""
    if img.ndim == 2:
        return img.copy()
    channels = img[..., :3].astype(np.uint16)
    return (channels.sum(axis=2) // 3).astype(np.uint8)


def binarize(img: np.ndarray, ratio: float = C.OCR_BINARIZE_RATIO) -> np.ndarray:
    """Threshold at ``ratio`` of the mean luminance.

    Pixels brighter than the threshold become 255, the rest 0.
    """
    lum = luminance(img)
    threshold = int(float(lum.mean()) * ratio)
    _, out = cv2.threshold(lum, threshold, 255, cv2.THRESH_BINARY)
    return out


def erode(binary: np.ndarray, iterations: int = 1) -> np.ndarray:
    """Shrink ink strokes by one pixel per iteration (3x3 neighbourhood).

    A pixel stays ink only if its whole neighbourhood is ink, so isolated
    noise pixels disappear.
    """
    # ink is 0: growing the background is eroding the strokes
    return cv2.dilate(binary, _KERNEL_3X3, iterations=iterations)


def dilate(binary: np.ndarray, iterations: int = 1) -> np.ndarray:
    """Grow ink strokes by one pixel per iteration (3x3 neighbourhood)."""
    return cv2.erode(binary, _KERNEL_3X3, iterations=iterations)


def sharpen(img: np.ndarray) -> np.ndarray:
    """3x3 sharpening convolution (center 5, orthogonal neighbours -1)."""
    return cv2.filter2D(img, -1, SHARPEN_KERNEL)


def gaussian_blur(img: np.ndarray, ksize: int = 3) -> np.ndarray:
    return cv2.GaussianBlur(img, (ksize, ksize), 0)


def adjust_contrast(img: np.ndarray, factor: float = 1.5, offset: float = 0.0) -> np.ndarray:
    """Linear contrast: ``out = img * factor + offset`` clipped to [0, 255]."""
    out = img.astype(np.float32) * factor + offset
    return np.clip(out, 0, 255).astype(np.uint8)


def adjust_gamma(img: np.ndarray, gamma: float = 1.2) -> np.ndarray:
    """Gamma correction via lookup table; gamma > 1 brightens mid-tones."""
    if gamma <= 0:
        raise ValueError("gamma must be positive")
    inv = 1.0 / gamma
    table = np.array(
        [((i / 255.0) ** inv) * 255 for i in range(256)],
        dtype=np.float32,
    )
    lut = np.clip(np.rint(table), 0, 255).astype(np.uint8)
    return cv2.LUT(img, lut)


def scale(img: np.ndarray, factor: float) -> np.ndarray:
    """Resize by ``factor`` (each side at least 1 pixel)."""
    if factor <= 0:
        raise ValueError("scale factor must be positive")
    h, w = img.shape[:2]
    new_w = max(1, int(w * factor))
    new_h = max(1, int(h * factor))
    interpolation = cv2.INTER_AREA if factor < 1.0 else cv2.INTER_LINEAR
    return cv2.resize(img, (new_w, new_h), interpolation=interpolation)


def upscale_factor(
    size: Tuple[int, int],
    *,
    target_width: int = C.OCR_UPSCALE_TARGET_WIDTH,
    target_height: int = C.OCR_UPSCALE_TARGET_HEIGHT,
    min_factor: float = C.OCR_UPSCALE_MIN_FACTOR,
) -> float:
    """Factor that brings a (width, height) region to OCR-friendly size."""
    w, h = size
    return max(target_width / float(w), target_height / float(h), min_factor)


def upscale_for_ocr(
    img: np.ndarray,
    *,
    target_width: int = C.OCR_UPSCALE_TARGET_WIDTH,
    target_height: int = C.OCR_UPSCALE_TARGET_HEIGHT,
    min_factor: float = C.OCR_UPSCALE_MIN_FACTOR,
) -> np.ndarray:
    h, w = img.shape[:2]
    factor = upscale_factor(
        (w, h),
        target_width=target_width,
        target_height=target_height,
        min_factor=min_factor,
    )
    if factor <= 1.0:
        return img.copy()
    return scale(img, factor)


def enhance_for_ocr(img: np.ndarray, ratio: float = C.OCR_BINARIZE_RATIO) -> np.ndarray:
    """Full enhancement chain: binarize -> erode -> dilate -> sharpen.

    Erosion before dilation removes speckles and then restores stroke width;
    the reverse order would close gaps instead.
    """
    binary = binarize(img, ratio)
    opened = dilate(erode(binary))
    return sharpen(opened)


__all__ = [
    "SHARPEN_KERNEL",
    "luminance",
    "binarize",
    "erode",
    "dilate",
    "sharpen",
    "gaussian_blur",
    "adjust_contrast",
    "adjust_gamma",
    "scale",
    "upscale_factor",
    "upscale_for_ocr",
    "enhance_for_ocr",
]
