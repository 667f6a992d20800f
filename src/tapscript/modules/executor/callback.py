"""
执行回调

调用方继承 ExecutionCallback 并覆盖关心的方法即可。每次运行恰好收到一个
终止回调（on_complete / on_stopped / on_error 之一）。回调在事件循环线程
中调用，stop() 触发的 on_stopped 在调用 stop() 的线程中调用。
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from ...core.constants import Comparison

if TYPE_CHECKING:
    from .types import Step


class ExecutionCallback:
    def on_start(self) -> None:
        pass

    def on_complete(self) -> None:
        pass

    def on_stopped(self) -> None:
        pass

    def on_error(self, reason: str) -> None:
        pass

    def on_step_done(self, step: "Step", index: int) -> None:
        pass

    def on_number_match(self, recognized: float, target: float, comparison: Comparison) -> None:
        pass

    def on_text_match(self, recognized: str, target: str, comparison: Comparison) -> None:
        pass

    def on_token_invalid(self) -> None:
        pass

    def on_recognition_miss(self, step: "Step", index: int, reason: str) -> None:
        """识别步骤全部阶段未匹配（运行继续）"""
        pass

