"""
进程级单脚本运行协调

同一进程内任意时刻最多一个脚本在执行。占用记录持有者，只有持有者能释放，
执行器重建后状态依然保留在模块级实例上。
"""
from __future__ import annotations

import threading
from typing import Optional


class RunCoordinator:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[object] = None

    def try_acquire(self, owner: object) -> bool:
        with self._lock:
            if self._owner is not None:
                return False
            self._owner = owner
            return True

    def release(self, owner: object) -> bool:
        """释放占用；owner 不是当前持有者时不做任何事。"""
        with self._lock:
            if self._owner is not owner:
                return False
            self._owner = None
            return True

    def is_running(self) -> bool:
        with self._lock:
            return self._owner is not None

    def owner(self) -> Optional[object]:
        with self._lock:
            return self._owner


# 全局协调器实例
run_coordinator = RunCoordinator()
