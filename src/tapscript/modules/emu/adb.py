"""
ADB 命令封装

回放只需要连接、状态查询、截图和两种输入手势。
所有失败（找不到 adb、超时、返回码非 0）统一抛 AdbError。
"""
from __future__ import annotations

import subprocess
from typing import List, Sequence


class AdbError(RuntimeError):
    pass


def _decode(data: bytes | None) -> str:
    return (data or b"").decode(errors="ignore")


class Adb:
    def __init__(self, adb_path: str = "adb") -> None:
        self.adb = adb_path

    def _run(self, args: Sequence[str], timeout: float = 10.0) -> subprocess.CompletedProcess:
        argv = [self.adb, *args]
        try:
            return subprocess.run(argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=timeout)
        except FileNotFoundError as e:
            raise AdbError(f"找不到 ADB 可执行文件: {self.adb}") from e
        except subprocess.TimeoutExpired as e:
            raise AdbError(f"ADB 命令超时({timeout:g}s): {' '.join(args)}") from e

    def _input(self, addr: str, *argv: object, timeout: float = 10.0) -> None:
        """adb shell input ...；返回码非 0 视为失败。"""
        cp = self._run(["-s", addr, "shell", "input", *(str(a) for a in argv)], timeout=timeout)
        if cp.returncode != 0:
            raise AdbError(_decode(cp.stderr).strip() or f"input {argv[0]} 返回码 {cp.returncode}")

    def connect(self, addr: str, timeout: float = 10.0) -> bool:
        cp = self._run(["connect", addr], timeout=timeout)
        out = _decode(cp.stdout).lower()
        return cp.returncode == 0 and ("connected" in out or "already" in out)

    def devices(self, timeout: float = 10.0) -> List[str]:
        """已就绪（状态为 device）的设备序列号"""
        cp = self._run(["devices"], timeout=timeout)
        ready = []
        for line in _decode(cp.stdout).splitlines()[1:]:
            serial, _, state = line.strip().partition("\t")
            if state.strip() == "device":
                ready.append(serial)
        return ready

    def get_state(self, addr: str, timeout: float = 5.0) -> str:
        cp = self._run(["-s", addr, "get-state"], timeout=timeout)
        state = _decode(cp.stdout).strip() if cp.returncode == 0 else ""
        return state or "unknown"

    def screencap(self, addr: str, timeout: float = 15.0) -> bytes:
        """整屏 PNG 字节"""
        argv = [self.adb, "-s", addr, "exec-out", "screencap", "-p"]
        try:
            png = subprocess.check_output(argv, stderr=subprocess.STDOUT, timeout=timeout)
        except FileNotFoundError as e:
            raise AdbError(f"找不到 ADB 可执行文件: {self.adb}") from e
        except subprocess.CalledProcessError as e:
            raise AdbError(f"ADB 截图失败: {_decode(e.output).strip()}") from e
        except subprocess.TimeoutExpired as e:
            raise AdbError(f"ADB 截图超时({timeout:g}s)") from e
        if not png:
            raise AdbError("ADB 截图返回空数据")
        return png

    def tap(self, addr: str, x: int, y: int, timeout: float = 10.0) -> None:
        self._input(addr, "tap", x, y, timeout=timeout)

    def swipe(self, addr: str, x1: int, y1: int, x2: int, y2: int, dur_ms: int = 500, timeout: float = 10.0) -> None:
        # 手势本身耗时 dur_ms，超时需要相应放宽
        self._input(addr, "swipe", x1, y1, x2, y2, dur_ms, timeout=timeout + dur_ms / 1000.0)
