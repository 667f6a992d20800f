"""
授权校验

执行引擎只关心 is_valid() / touch_activity()；ExpiringLicense 额外提供
到期时间、剩余时长、续期和强制失效，供控制接口展示和管理。
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Protocol

from ...core.config import settings
from ...core.logger import logger
from ...core.timeutils import ensure_utc, format_beijing_time, format_duration, now_utc


class LicenseGate(Protocol):
    def is_valid(self) -> bool: ...

    def touch_activity(self) -> None: ...


class ExpiringLicense:
    """带到期时间的授权；未设置到期时间视为无效。"""

    def __init__(
        self,
        expires_at: Optional[datetime] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._expires_at = ensure_utc(expires_at) if expires_at else None
        self._last_activity: Optional[datetime] = None
        self._log = logger.bind(module="License")

    @classmethod
    def from_settings(cls) -> "ExpiringLicense":
        return cls(expires_at=settings.license_expires_at)

    @property
    def expires_at(self) -> Optional[datetime]:
        with self._lock:
            return self._expires_at

    @property
    def last_activity(self) -> Optional[datetime]:
        with self._lock:
            return self._last_activity

    def is_valid(self) -> bool:
        with self._lock:
            return self._expires_at is not None and self._clock() < self._expires_at

    def touch_activity(self) -> None:
        with self._lock:
            self._last_activity = self._clock()

    def remaining(self) -> timedelta:
        with self._lock:
            if self._expires_at is None:
                return timedelta(0)
            return max(timedelta(0), self._expires_at - self._clock())

    def expire(self) -> None:
        """立即失效"""
        with self._lock:
            self._expires_at = None
        self._log.warning("授权已被标记为失效")

    def renew(self, *, expires_at: Optional[datetime] = None, duration: Optional[timedelta] = None) -> datetime:
        """续期：指定到期时间，或从当前时间起延长 duration。"""
        if (expires_at is None) == (duration is None):
            raise ValueError("exactly one of expires_at / duration is required")
        with self._lock:
            new_expiry = ensure_utc(expires_at) if expires_at else self._clock() + duration
            if new_expiry <= self._clock():
                raise ValueError("new expiry must be in the future")
            self._expires_at = new_expiry
        self._log.info("授权已续期，到期时间: {}", format_beijing_time(new_expiry))
        return new_expiry

    def status(self) -> Dict[str, Any]:
        remaining = self.remaining()
        expires_at = self.expires_at
        last_activity = self.last_activity
        return {
            "valid": self.is_valid(),
            "expires_at": expires_at.isoformat() if expires_at else None,
            "expires_at_display": format_beijing_time(expires_at),
            "remaining_seconds": int(remaining.total_seconds()),
            "remaining_display": format_duration(remaining),
            "last_activity": last_activity.isoformat() if last_activity else None,
        }
