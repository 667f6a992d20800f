"""
日志配置模块
"""
import logging
import sys
from pathlib import Path

from loguru import logger

from .config import settings

_configured = False

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class _InterceptHandler(logging.Handler):
    """把标准库 logging（uvicorn 等）转发到 loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _bridge_stdlib_logging() -> None:
    handler = _InterceptHandler()
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False
        std_logger.setLevel(settings.log_level.upper())


def setup_logger(force: bool = False):
    """配置日志系统（重复调用时除非 force 否则不重建 sink）"""
    global _configured
    if _configured and not force:
        return logger

    # 移除默认处理器
    logger.remove()

    # 创建日志目录
    log_dir = Path(settings.log_path)
    log_dir.mkdir(parents=True, exist_ok=True)

    # 控制台输出（无控制台的窗口模式下 stdout 为 None）
    console_missing = False
    if settings.log_console_enabled:
        stream = sys.stdout or sys.stderr
        if stream is not None:
            logger.add(stream, level=settings.log_level, format=_CONSOLE_FORMAT)
        else:
            console_missing = True

    # 文件输出 - 全局日志
    logger.add(
        log_dir / "app_{time:YYYY-MM-DD}.log",
        level=settings.log_level,
        format=_FILE_FORMAT,
        rotation="00:00",  # 每天午夜轮转
        retention=f"{settings.log_retention_days} days",
        encoding="utf-8",
        serialize=settings.log_file_format == "json",
    )

    # 错误日志单独记录
    logger.add(
        log_dir / "error_{time:YYYY-MM-DD}.log",
        level="ERROR",
        format=_FILE_FORMAT,
        rotation="00:00",
        retention=f"{settings.log_retention_days * 2} days",
        encoding="utf-8"
    )

    _bridge_stdlib_logging()
    _configured = True

    if console_missing:
        logger.warning("未检测到可用控制台输出流，日志仅写入文件")
    return logger


# 初始化日志系统
logger = setup_logger()
