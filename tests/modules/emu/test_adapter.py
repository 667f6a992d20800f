import cv2
import numpy as np
import pytest

from tapscript.modules.emu.adapter import AdapterConfig, CaptureError, EmulatorAdapter
from tapscript.modules.emu.adb import AdbError
from tapscript.modules.executor.types import Rect


def _png(width=200, height=100) -> bytes:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, 100:] = (255, 255, 255)
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()


class _DummyAdb:
    def __init__(self, *, fail=False, screen=b"", state="device"):
        self.fail = fail
        self.screen = screen
        self.state = state
        self.calls = []

    def tap(self, addr, x, y):
        self.calls.append(("tap", addr, x, y))
        if self.fail:
            raise AdbError("offline")

    def swipe(self, addr, x1, y1, x2, y2, dur_ms=500):
        self.calls.append(("swipe", addr, x1, y1, x2, y2, dur_ms))
        if self.fail:
            raise AdbError("offline")

    def screencap(self, addr):
        if self.fail:
            raise AdbError("offline")
        return self.screen

    def get_state(self, addr):
        return self.state

    def connect(self, addr):
        self.calls.append(("connect", addr))
        return True


def _adapter(adb) -> EmulatorAdapter:
    return EmulatorAdapter(AdapterConfig(adb_path="adb", adb_addr="emu-1", swipe_duration_ms=500), adb=adb)


def test_io_key_is_device_address():
    assert _adapter(_DummyAdb()).io_key == "emu-1"


def test_gestures_return_true_on_success():
    adb = _DummyAdb()
    adapter = _adapter(adb)

    assert adapter.tap(1, 2) is True
    assert adapter.swipe(1, 2, 3, 4) is True
    assert adb.calls == [("tap", "emu-1", 1, 2), ("swipe", "emu-1", 1, 2, 3, 4, 500)]


def test_gestures_return_false_on_adb_error():
    adapter = _adapter(_DummyAdb(fail=True))
    assert adapter.tap(1, 2) is False
    assert adapter.swipe(1, 2, 3, 4, 300) is False


def test_capture_region_crops_screen():
    adapter = _adapter(_DummyAdb(screen=_png()))

    region = adapter.capture_region(Rect(left=100, top=0, right=200, bottom=60))

    assert region.shape == (60, 100, 3)
    assert (region == 255).all()


def test_capture_failure_raises_capture_error():
    with pytest.raises(CaptureError):
        _adapter(_DummyAdb(fail=True)).capture_region(Rect(left=0, top=0, right=60, bottom=60))

    with pytest.raises(CaptureError):
        _adapter(_DummyAdb(screen=b"garbage")).capture_ndarray()


def test_region_outside_screen_raises_capture_error():
    adapter = _adapter(_DummyAdb(screen=_png()))
    with pytest.raises(CaptureError):
        adapter.capture_region(Rect(left=500, top=500, right=600, bottom=600))


def test_ensure_running_connects_when_not_attached():
    adb = _DummyAdb(state="offline")
    assert _adapter(adb).ensure_running() is True
    assert ("connect", "emu-1") in adb.calls
