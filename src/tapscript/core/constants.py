"""
常量和枚举定义
"""
from __future__ import annotations

from enum import Enum


class ExecutionMode(str, Enum):
    """脚本执行模式"""
    ONCE = "once"  # 单次执行
    REPEAT = "repeat"  # 循环执行，直到手动停止


class Comparison(str, Enum):
    """识别结果比较方式"""
    LESS_THAN = "less_than"  # 仅数字
    EQUALS = "equals"  # 仅数字
    CONTAINS = "contains"  # 仅文字

    @property
    def is_numeric(self) -> bool:
        return self is not Comparison.CONTAINS


class StepType(str, Enum):
    """步骤类型"""
    CLICK = "click"
    SWIPE = "swipe"
    WAIT = "wait"
    RECOGNIZE = "recognize"


class RunState(str, Enum):
    """执行器状态"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    ERRORED = "errored"


class ErrorKind(str, Enum):
    """on_error 原因前缀，供调用方区分处理方式"""
    LICENSE_INVALID = "license invalid"  # 需要重新授权
    ALREADY_RUNNING = "already running"  # 可等待当前脚本结束
    STEP_FAILED = "step failed"  # 手势下发失败
    EXECUTION_ERROR = "execution error"  # 未预期异常

    def reason(self, detail: str) -> str:
        return f"{self.value}: {detail}"

    @classmethod
    def classify(cls, reason: str) -> "ErrorKind":
        for kind in cls:
            if reason.startswith(kind.value):
                return kind
        return cls.EXECUTION_ERROR


# 区域最小边长（录制时校验，执行时不再校验）
MIN_REGION_SIZE = 50

# 手势后的等待时间（毫秒），等待界面刷新
CLICK_SETTLE_MS = 500
SWIPE_SETTLE_MS = 800
SWIPE_DURATION_MS = 500
# 循环模式两轮之间的间隔（毫秒）
REPEAT_INTERVAL_MS = 1000
# Wait 步骤缺省时长
DEFAULT_WAIT_MS = 1000

# 识别数字有效范围
NUMBER_MIN = -999999999.0
NUMBER_MAX = 999999999.0

# 缩放策略（从缩小到放大）
OCR_SCALE_FACTORS = (0.5, 0.75, 1.0, 1.5, 2.0, 3.0)
# 二值化阈值 = 平均亮度 * 该比例
OCR_BINARIZE_RATIO = 0.7
# 增强阶段固定放大：至少放大到该尺寸，且不小于 OCR_UPSCALE_MIN_FACTOR 倍
OCR_UPSCALE_TARGET_WIDTH = 1200
OCR_UPSCALE_TARGET_HEIGHT = 800
OCR_UPSCALE_MIN_FACTOR = 4.0

ERROR_LICENSE_INVALID = ErrorKind.LICENSE_INVALID.reason(
    "license expired or missing, please re-authenticate"
)
ERROR_LICENSE_EXPIRED_DURING_RUN = ErrorKind.LICENSE_INVALID.reason(
    "license expired during execution, script stopped"
)
ERROR_ANOTHER_SCRIPT_RUNNING = ErrorKind.ALREADY_RUNNING.reason(
    "another script is executing, wait for it to finish"
)
ERROR_EXECUTOR_BUSY = ErrorKind.ALREADY_RUNNING.reason(
    "this executor is already executing a script"
)
