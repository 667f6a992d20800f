"""
时间工具模块 - 内部统一使用带时区的 UTC 时间，展示时转换为北京时间
"""
from datetime import datetime, timedelta
from typing import Optional

import pytz

# 北京时区
BEIJING_TZ = pytz.timezone('Asia/Shanghai')


def now_utc() -> datetime:
    """获取带时区的 UTC 当前时间"""
    return datetime.now(pytz.UTC)


def ensure_utc(dt: datetime) -> datetime:
    """无时区的时间按 UTC 处理，有时区的转换到 UTC"""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def format_beijing_time(dt: Optional[datetime]) -> str:
    """格式化为北京时间字符串（格式：2025-09-03 21:00:00）"""
    if dt is None:
        return ""
    return ensure_utc(dt).astimezone(BEIJING_TZ).strftime("%Y-%m-%d %H:%M:%S")


def format_duration(delta: timedelta) -> str:
    """剩余时长展示：X天X小时X分钟"""
    total = max(0, int(delta.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}天{hours}小时{minutes}分钟"
    if hours > 0:
        return f"{hours}小时{minutes}分钟"
    return f"{minutes}分钟"
