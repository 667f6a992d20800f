"""
Vision utilities: image loading/decoding and buffer normalization.
"""
from __future__ import annotations

import os
from typing import Any, Union

import cv2  # type: ignore
import numpy as np
from PIL import Image

ImageLike = Union[str, bytes, np.ndarray, Image.Image]


def load_image(img: ImageLike) -> np.ndarray:
    """Load an image into a BGR numpy array.

    - str: treated as a file path and loaded via cv2.imread
    - bytes: decoded via cv2.imdecode
    - PIL.Image: converted from RGB(A) to BGR
    - np.ndarray: returned as-is (assumed BGR, BGRA or single-channel)
    """
    if isinstance(img, np.ndarray):
        return img
    if isinstance(img, (bytes, bytearray)):
        arr = np.frombuffer(img, dtype=np.uint8)
        mat = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError("Failed to decode image bytes")
        return mat
    if isinstance(img, Image.Image):
        rgb = np.asarray(img.convert("RGB"))
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    if isinstance(img, str):
        if not os.path.isfile(img):
            raise FileNotFoundError(f"Image file not found: {img}")
        mat = cv2.imread(img, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError(f"Failed to load image from path: {img}")
        return mat
    raise TypeError(f"Unsupported image type: {type(img)}")


def to_gray(img: np.ndarray) -> np.ndarray:
    """Convert BGR image to grayscale (no-op if already single-channel)."""
    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def to_bgr(img: np.ndarray) -> np.ndarray:
    """Convert gray/BGRA image to 3-channel BGR (no-op if already BGR)."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def normalize_buffer(img: ImageLike) -> np.ndarray:
    """Return an owned, writable, C-contiguous BGR uint8 copy of ``img``.

    Capture backends may hand back read-only views, BGRA frames or non-uint8
    buffers; everything downstream works on the normalized copy only.
    """
    mat = load_image(img)
    if mat.size == 0:
        raise ValueError("Empty image buffer")
    if mat.dtype != np.uint8:
        mat = np.clip(mat, 0, 255).astype(np.uint8)
    mat = to_bgr(mat)
    out = np.ascontiguousarray(mat).copy()
    out.setflags(write=True)
    return out


def crop_rect(img: np.ndarray, rect: Any) -> np.ndarray:
    """Crop ``rect`` (left/top/right/bottom, absolute coords) clipped to the image.

    Raises ValueError if the clipped region is empty.
    """
    h, w = img.shape[:2]
    left = max(0, int(rect.left))
    top = max(0, int(rect.top))
    right = min(w, int(rect.right))
    bottom = min(h, int(rect.bottom))
    if right <= left or bottom <= top:
        raise ValueError(
            f"Region ({rect.left},{rect.top},{rect.right},{rect.bottom}) is outside image {w}x{h}"
        )
    return img[top:bottom, left:right].copy()


__all__ = [
    "ImageLike",
    "load_image",
    "to_gray",
    "to_bgr",
    "normalize_buffer",
    "crop_rect",
]
