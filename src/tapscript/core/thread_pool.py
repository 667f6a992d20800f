"""
全局线程池管理

阻塞调用统一放到线程池里 await，事件循环只负责调度：
- io: ADB subprocess、脚本文件读写
- device: 每台设备一个单线程池，同一设备的手势/截图按提交顺序串行执行
- compute: 图像增强、OCR 推理
"""
from __future__ import annotations

import asyncio
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict

from .config import settings
from .logger import logger

_IO = "io"
_COMPUTE = "compute"

_pools: Dict[str, ThreadPoolExecutor] = {}
_device_pools: Dict[str, ThreadPoolExecutor] = {}
_pool_lock = threading.Lock()


def _pool_size(configured: int, floor: int, ceiling: int, per_cpu: float) -> int:
    """configured > 0 时直接使用，否则按 CPU 核数估算并限制在 [floor, ceiling]。"""
    if configured > 0:
        return configured
    cpu = os.cpu_count() or 4
    return min(max(floor, int(cpu * per_cpu)), ceiling)


def _shared_pool(name: str) -> ThreadPoolExecutor:
    with _pool_lock:
        pool = _pools.get(name)
        if pool is not None:
            return pool
        if name == _IO:
            size = _pool_size(settings.io_thread_pool_size, 4, 16, 1.0)
            prefix = "io"
        else:
            size = _pool_size(settings.compute_thread_pool_size, 2, 8, 0.5)
            prefix = "cv-compute"
        pool = ThreadPoolExecutor(max_workers=size, thread_name_prefix=prefix)
        _pools[name] = pool
        logger.info("线程池已创建: {} max_workers={}", name, size)
        return pool


def get_io_pool() -> ThreadPoolExecutor:
    return _shared_pool(_IO)


def get_compute_pool() -> ThreadPoolExecutor:
    return _shared_pool(_COMPUTE)


def get_emulator_io_pool(io_key: str) -> ThreadPoolExecutor:
    """按设备地址取单线程池；地址为空时返回公共 I/O 池。"""
    key = str(io_key or "").strip()
    if not key:
        return get_io_pool()

    with _pool_lock:
        pool = _device_pools.get(key)
        if pool is None:
            pool = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix=f"emu-io-{len(_device_pools) + 1}",
            )
            _device_pools[key] = pool
            logger.info("设备 I/O 线程池已创建: io_key={}", key)
        return pool


async def _submit(pool: ThreadPoolExecutor, func: Callable[..., Any], *args: Any) -> Any:
    return await asyncio.get_running_loop().run_in_executor(pool, func, *args)


async def run_in_io(func, *args):
    return await _submit(get_io_pool(), func, *args)


async def run_in_emulator_io(io_key: str, func, *args):
    """在设备专属线程中执行同步函数并 await 结果。"""
    return await _submit(get_emulator_io_pool(io_key), func, *args)


async def run_in_compute(func, *args):
    return await _submit(get_compute_pool(), func, *args)


def shutdown_pools() -> None:
    """关闭所有线程池（app shutdown 及测试清理时调用），之后再取用会重新创建。"""
    with _pool_lock:
        pools = list(_pools.values()) + list(_device_pools.values())
        _pools.clear()
        _device_pools.clear()
    for pool in pools:
        pool.shutdown(wait=False)
    logger.info("线程池已关闭")
