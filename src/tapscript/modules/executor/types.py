"""
脚本与步骤数据结构

步骤是按 type 区分的联合类型；构造时即校验区域尺寸和比较方式与目标值的
搭配，执行阶段不再重复校验。
"""
from __future__ import annotations

import uuid
from typing import Annotated, Any, ClassVar, List, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from ...core.constants import DEFAULT_WAIT_MS, MIN_REGION_SIZE, Comparison, ExecutionMode


class Rect(BaseModel):
    """屏幕区域（绝对坐标）"""

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    right: int
    bottom: int

    @model_validator(mode="after")
    def _check_size(self) -> "Rect":
        if self.width < MIN_REGION_SIZE or self.height < MIN_REGION_SIZE:
            raise ValueError(
                f"region must be at least {MIN_REGION_SIZE}x{MIN_REGION_SIZE}, "
                f"got {self.width}x{self.height}"
            )
        return self

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


class ClickStep(BaseModel):
    model_config = ConfigDict(frozen=True)
    label: ClassVar[str] = "Click"

    type: Literal["click"] = "click"
    x: int
    y: int


class SwipeStep(BaseModel):
    model_config = ConfigDict(frozen=True)
    label: ClassVar[str] = "Swipe"

    type: Literal["swipe"] = "swipe"
    x1: int
    y1: int
    x2: int
    y2: int


class WaitStep(BaseModel):
    model_config = ConfigDict(frozen=True)
    label: ClassVar[str] = "Wait"

    type: Literal["wait"] = "wait"
    duration_ms: int = Field(default=DEFAULT_WAIT_MS, ge=0)


class RecognizeStep(BaseModel):
    """区域识别：LESS_THAN / EQUALS 对应数字目标，CONTAINS 对应文字目标"""

    model_config = ConfigDict(frozen=True)
    label: ClassVar[str] = "Recognize"

    type: Literal["recognize"] = "recognize"
    region: Rect
    target: Union[float, str]
    comparison: Comparison

    @model_validator(mode="before")
    @classmethod
    def _reject_bool_target(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("target"), bool):
            raise ValueError("target must be a number or text")
        return data

    @field_validator("target")
    @classmethod
    def _int_target_as_float(cls, v: Union[float, str]) -> Union[float, str]:
        if isinstance(v, int):
            return float(v)
        return v

    @model_validator(mode="after")
    def _check_target(self) -> "RecognizeStep":
        if self.comparison.is_numeric:
            if not isinstance(self.target, float):
                raise ValueError(f"{self.comparison.value} requires a numeric target")
        else:
            if not isinstance(self.target, str) or not self.target.strip():
                raise ValueError("contains requires a non-empty text target")
        return self


Step = Annotated[
    Union[ClickStep, SwipeStep, WaitStep, RecognizeStep],
    Field(discriminator="type"),
]

step_adapter: TypeAdapter = TypeAdapter(Step)


class Script(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = Field(min_length=1)
    steps: List[Step] = Field(default_factory=list)
    mode: ExecutionMode = ExecutionMode.ONCE


class GestureDevice(Protocol):
    """手势能力：失败返回 False"""

    def tap(self, x: int, y: int) -> bool: ...

    def swipe(self, x1: int, y1: int, x2: int, y2: int, dur_ms: Optional[int] = None) -> bool: ...


class RegionRecognizer(Protocol):
    async def recognize(self, region: Rect, target: Union[float, str], comparison: Comparison) -> Any: ...
