"""
执行器模块
"""
from .callback import ExecutionCallback
from .coordinator import RunCoordinator, run_coordinator
from .license import ExpiringLicense, LicenseGate
from .script_executor import ExecutionTimings, ScriptExecutor
from .types import ClickStep, Rect, RecognizeStep, Script, Step, SwipeStep, WaitStep

__all__ = [
    "ExecutionCallback",
    "RunCoordinator",
    "run_coordinator",
    "ExpiringLicense",
    "LicenseGate",
    "ExecutionTimings",
    "ScriptExecutor",
    "ClickStep",
    "Rect",
    "RecognizeStep",
    "Script",
    "Step",
    "SwipeStep",
    "WaitStep",
]
