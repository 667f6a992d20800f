"""
核心配置模块
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import constants as C


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # 设备
    adb_path: str = Field(default="adb")
    adb_addr: str = Field(default="127.0.0.1:16384")
    swipe_duration_ms: int = Field(default=C.SWIPE_DURATION_MS)

    # 执行节奏
    click_settle_ms: int = Field(default=C.CLICK_SETTLE_MS)
    swipe_settle_ms: int = Field(default=C.SWIPE_SETTLE_MS)
    repeat_interval_ms: int = Field(default=C.REPEAT_INTERVAL_MS)

    # OCR
    paddle_ocr_lang: str = Field(default="ch")
    ocr_model_dir: str = Field(default="./models/ocr")
    ocr_min_confidence: float = Field(default=0.5)
    ocr_scale_factors: List[float] = Field(default_factory=lambda: list(C.OCR_SCALE_FACTORS))
    ocr_binarize_ratio: float = Field(default=C.OCR_BINARIZE_RATIO)
    ocr_upscale_target_width: int = Field(default=C.OCR_UPSCALE_TARGET_WIDTH)
    ocr_upscale_target_height: int = Field(default=C.OCR_UPSCALE_TARGET_HEIGHT)
    ocr_upscale_min_factor: float = Field(default=C.OCR_UPSCALE_MIN_FACTOR)
    # 等于比较的容差，0 表示精确相等
    ocr_equals_tolerance: float = Field(default=0.0)
    # 为空时不保存各阶段调试图像
    ocr_debug_dir: str = Field(default="")

    # 脚本存储
    scripts_path: str = Field(default="./data/scripts.json")

    # 授权（未设置视为无效）
    license_expires_at: Optional[datetime] = Field(default=None)

    # 线程池（<=0 自动计算）
    io_thread_pool_size: int = Field(default=0)
    compute_thread_pool_size: int = Field(default=0)

    # Web服务
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=9001)

    # 日志
    log_level: str = Field(default="INFO")
    log_path: str = Field(default="./logs")
    log_retention_days: int = Field(default=3)
    log_console_enabled: bool = Field(default=True)
    # json | text
    log_file_format: str = Field(default="json")


# 全局配置实例
settings = Settings()
