import numpy as np
import pytest

from tapscript.modules.vision import enhance


def _text_like_image() -> np.ndarray:
    """白底上一条 6px 宽的黑色竖线，外加一个孤立噪点。"""
    img = np.full((40, 40, 3), 255, dtype=np.uint8)
    img[5:35, 17:23] = 0
    img[3, 3] = 0
    return img


def test_binarize_splits_on_seventy_percent_of_mean():
    gray = np.array([[10, 100, 200, 250]], dtype=np.uint8)
    # mean 140 -> threshold int(98.0) = 98, strictly greater becomes white
    out = enhance.binarize(gray)
    assert out.tolist() == [[0, 255, 255, 255]]


def test_binarize_uses_channel_mean_brightness():
    img = np.zeros((1, 2, 3), dtype=np.uint8)
    img[0, 0] = (30, 30, 30)
    img[0, 1] = (255, 255, 255)
    out = enhance.binarize(img)
    assert out.shape == (1, 2)
    assert out[0, 0] == 0
    assert out[0, 1] == 255


def test_erode_removes_isolated_ink_pixel_and_thins_strokes():
    binary = enhance.binarize(_text_like_image())
    eroded = enhance.erode(binary)

    assert eroded[3, 3] == 255
    # stroke columns 17..22 shrink to 18..21
    assert eroded[20, 17] == 255
    assert eroded[20, 18] == 0
    assert eroded[20, 21] == 0
    assert eroded[20, 22] == 255


def test_dilate_grows_strokes():
    binary = enhance.binarize(_text_like_image())
    dilated = enhance.dilate(binary)

    assert dilated[20, 16] == 0
    assert dilated[20, 23] == 0
    assert dilated[20, 15] == 255


def test_erode_then_dilate_restores_stroke_without_noise():
    binary = enhance.binarize(_text_like_image())
    opened = enhance.dilate(enhance.erode(binary))

    assert opened[3, 3] == 255
    assert (opened[10:30, 17:23] == 0).all()


def test_sharpen_kernel_values():
    assert enhance.SHARPEN_KERNEL.tolist() == [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ]


def test_sharpen_keeps_flat_regions():
    flat = np.full((10, 10), 128, dtype=np.uint8)
    assert (enhance.sharpen(flat) == 128).all()


def test_transforms_do_not_mutate_input():
    img = _text_like_image()
    before = img.copy()

    enhance.binarize(img)
    enhance.sharpen(img)
    enhance.scale(img, 2.0)
    enhance.adjust_contrast(img, 1.5)
    enhance.adjust_gamma(img, 1.2)
    enhance.gaussian_blur(img)
    enhance.enhance_for_ocr(img)

    assert np.array_equal(img, before)


def test_scale_keeps_at_least_one_pixel():
    img = np.zeros((3, 5, 3), dtype=np.uint8)
    assert enhance.scale(img, 2.0).shape[:2] == (6, 10)
    assert enhance.scale(img, 0.1).shape[:2] == (1, 1)


def test_scale_rejects_non_positive_factor():
    with pytest.raises(ValueError):
        enhance.scale(np.zeros((4, 4), dtype=np.uint8), 0)


def test_upscale_factor_uses_target_size_or_minimum():
    assert enhance.upscale_factor((100, 50)) == 16.0
    assert enhance.upscale_factor((600, 400)) == 4.0


def test_upscale_for_ocr_resizes_region():
    img = np.zeros((50, 100, 3), dtype=np.uint8)
    out = enhance.upscale_for_ocr(img)
    assert out.shape[:2] == (800, 1600)


def test_adjust_contrast_clips():
    img = np.array([[100, 200]], dtype=np.uint8)
    assert enhance.adjust_contrast(img, 2.0).tolist() == [[200, 255]]


def test_adjust_gamma_rejects_non_positive():
    with pytest.raises(ValueError):
        enhance.adjust_gamma(np.zeros((2, 2), dtype=np.uint8), 0)


def test_enhance_for_ocr_returns_single_channel_image():
    out = enhance.enhance_for_ocr(_text_like_image())
    assert out.ndim == 2
    assert out.dtype == np.uint8
