import inspect
import logging
import sys
from uuid import uuid4

import pytest


def _flush_loguru(logger_module) -> None:
    complete_result = logger_module.logger.complete()
    if inspect.isawaitable(complete_result):
        iterator = complete_result.__await__()
        while True:
            try:
                next(iterator)
            except StopIteration:
                break


def _latest_log_file(log_dir, pattern):
    files = sorted(log_dir.glob(pattern))
    assert files, f"missing log file pattern: {pattern}"
    return files[-1]


_LOG_KEYS = (
    "log_level",
    "log_path",
    "log_retention_days",
    "log_console_enabled",
    "log_file_format",
)


@pytest.fixture()
def configured_logger(tmp_path):
    from tapscript.core.config import settings
    import tapscript.core.logger as logger_module

    original = {key: getattr(settings, key) for key in _LOG_KEYS}

    settings.log_level = "INFO"
    settings.log_path = str(tmp_path)
    settings.log_retention_days = 3
    settings.log_console_enabled = False
    settings.log_file_format = "text"
    logger_module.setup_logger(force=True)

    try:
        yield logger_module, tmp_path
    finally:
        for key, value in original.items():
            setattr(settings, key, value)
        logger_module.setup_logger(force=True)


def test_file_output_written(configured_logger):
    logger_module, log_dir = configured_logger
    message = f"file-output-{uuid4()}"

    logger_module.logger.info(message)
    _flush_loguru(logger_module)

    app_log_path = _latest_log_file(log_dir, "app_*.log")
    content = app_log_path.read_text(encoding="utf-8")
    assert message in content


def test_errors_also_written_to_error_log(configured_logger):
    logger_module, log_dir = configured_logger
    info_message = f"info-{uuid4()}"
    error_message = f"error-{uuid4()}"

    logger_module.logger.info(info_message)
    logger_module.logger.error(error_message)
    _flush_loguru(logger_module)

    content = _latest_log_file(log_dir, "error_*.log").read_text(encoding="utf-8")
    assert error_message in content
    assert info_message not in content


def test_stdlib_uvicorn_error_bridged(configured_logger):
    logger_module, log_dir = configured_logger
    message = f"uvicorn-error-{uuid4()}"

    logging.getLogger("uvicorn.error").info(message)
    _flush_loguru(logger_module)

    app_log_path = _latest_log_file(log_dir, "app_*.log")
    content = app_log_path.read_text(encoding="utf-8")
    assert message in content


def test_setup_logger_idempotent_when_forced_twice(configured_logger):
    logger_module, log_dir = configured_logger
    message = f"idempotent-{uuid4()}"

    logger_module.setup_logger(force=True)
    logger_module.setup_logger(force=True)
    logger_module.logger.info(message)
    _flush_loguru(logger_module)

    app_log_path = _latest_log_file(log_dir, "app_*.log")
    content = app_log_path.read_text(encoding="utf-8")
    assert content.count(message) == 1


def test_console_sink_degrades_when_std_streams_missing(tmp_path, monkeypatch):
    from tapscript.core.config import settings
    import tapscript.core.logger as logger_module

    original = {key: getattr(settings, key) for key in _LOG_KEYS}

    monkeypatch.setattr(sys, "stdout", None, raising=False)
    monkeypatch.setattr(sys, "stderr", None, raising=False)

    settings.log_level = "INFO"
    settings.log_path = str(tmp_path)
    settings.log_retention_days = 3
    settings.log_console_enabled = True
    settings.log_file_format = "text"

    try:
        logger_module.setup_logger(force=True)
        message = f"windowed-log-{uuid4()}"
        logger_module.logger.info(message)
        _flush_loguru(logger_module)

        app_log_path = _latest_log_file(tmp_path, "app_*.log")
        content = app_log_path.read_text(encoding="utf-8")
        assert message in content
        assert "未检测到可用控制台输出流" in content
    finally:
        monkeypatch.undo()
        for key, value in original.items():
            setattr(settings, key, value)
        logger_module.setup_logger(force=True)
