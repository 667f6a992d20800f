from .enhance import (
    SHARPEN_KERNEL,
    adjust_contrast,
    adjust_gamma,
    binarize,
    dilate,
    enhance_for_ocr,
    erode,
    gaussian_blur,
    scale,
    sharpen,
    upscale_for_ocr,
)
from .utils import (
    ImageLike,
    crop_rect,
    load_image,
    normalize_buffer,
    to_gray,
)

__all__ = [
    "SHARPEN_KERNEL",
    "adjust_contrast",
    "adjust_gamma",
    "binarize",
    "dilate",
    "enhance_for_ocr",
    "erode",
    "gaussian_blur",
    "scale",
    "sharpen",
    "upscale_for_ocr",
    "ImageLike",
    "crop_rect",
    "load_image",
    "normalize_buffer",
    "to_gray",
]
