import subprocess
from types import SimpleNamespace

import pytest

from tapscript.modules.emu import adb as adb_module
from tapscript.modules.emu.adb import Adb, AdbError


def _completed(returncode=0, stdout=b"", stderr=b""):
    return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)


def test_tap_builds_input_command(monkeypatch):
    calls = []

    def _fake_run(args, **kwargs):
        calls.append(args)
        return _completed()

    monkeypatch.setattr(adb_module.subprocess, "run", _fake_run)

    Adb("adb-bin").tap("127.0.0.1:16384", 10, 20)

    assert calls == [["adb-bin", "-s", "127.0.0.1:16384", "shell", "input", "tap", "10", "20"]]


def test_swipe_passes_duration(monkeypatch):
    calls = []

    def _fake_run(args, **kwargs):
        calls.append((args, kwargs["timeout"]))
        return _completed()

    monkeypatch.setattr(adb_module.subprocess, "run", _fake_run)

    Adb().swipe("emu", 1, 2, 3, 4, 500)

    args, timeout = calls[0]
    assert args[-5:] == ["1", "2", "3", "4", "500"]
    assert timeout == pytest.approx(10.5)


def test_tap_failure_raises_adb_error(monkeypatch):
    monkeypatch.setattr(
        adb_module.subprocess,
        "run",
        lambda args, **kwargs: _completed(returncode=1, stderr=b"device offline"),
    )

    with pytest.raises(AdbError, match="device offline"):
        Adb().tap("emu", 1, 1)


def test_missing_adb_binary(monkeypatch):
    def _raise(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(adb_module.subprocess, "run", _raise)

    with pytest.raises(AdbError):
        Adb("/nope/adb").connect("emu")


def test_timeout_becomes_adb_error(monkeypatch):
    def _raise(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr(adb_module.subprocess, "run", _raise)

    with pytest.raises(AdbError):
        Adb().tap("emu", 1, 1)


def test_connect_and_devices(monkeypatch):
    outputs = {
        "connect": _completed(stdout=b"already connected to emu"),
        "devices": _completed(stdout=b"List of devices attached\nemu\tdevice\nother\toffline\n"),
    }
    monkeypatch.setattr(adb_module.subprocess, "run", lambda args, **kwargs: outputs[args[1]])

    adb = Adb()
    assert adb.connect("emu") is True
    assert adb.devices() == ["emu"]


def test_get_state(monkeypatch):
    monkeypatch.setattr(adb_module.subprocess, "run", lambda args, **kwargs: _completed(stdout=b"device\n"))
    assert Adb().get_state("emu") == "device"

    monkeypatch.setattr(adb_module.subprocess, "run", lambda args, **kwargs: _completed(returncode=1))
    assert Adb().get_state("emu") == "unknown"


def test_screencap(monkeypatch):
    monkeypatch.setattr(adb_module.subprocess, "check_output", lambda args, **kwargs: b"\x89PNG")
    assert Adb().screencap("emu") == b"\x89PNG"

    def _fail(args, **kwargs):
        raise subprocess.CalledProcessError(1, args, output=b"error: closed")

    monkeypatch.setattr(adb_module.subprocess, "check_output", _fail)
    with pytest.raises(AdbError, match="closed"):
        Adb().screencap("emu")

    monkeypatch.setattr(adb_module.subprocess, "check_output", lambda args, **kwargs: b"")
    with pytest.raises(AdbError):
        Adb().screencap("emu")
