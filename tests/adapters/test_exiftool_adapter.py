import json
import subprocess
from pathlib import Path

import pytest

from aicat_backend.adapters.tools import exiftool as m
from aicat_backend.shared import ErrorCode


def _mk_completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=["x"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def ex(monkeypatch):
    monkeypatch.setattr(m.ExifTool, "_check_available", lambda self: True)
    return m.ExifTool(bin_name="exiftool", timeout=1.0)


@pytest.fixture
def image(tmp_path: Path) -> Path:
    p = tmp_path / "a.png"
    p.write_bytes(b"x")
    return p


def test_decode_bytes_best_effort_variants():
    assert m._decode_bytes_best_effort(None) == ("", False)
    assert m._decode_bytes_best_effort("x") == ("x", False)
    assert m._decode_bytes_best_effort(b"abc") == ("abc", False)
    assert m._decode_bytes_best_effort("café".encode("cp1252")) == ("café", False)


def test_executable_resolution_helpers(monkeypatch, tmp_path: Path):
    exep = tmp_path / "exiftool.exe"
    exep.write_text("x")

    monkeypatch.setattr(m.shutil, "which", lambda raw: str(exep) if raw == "exiftool" else None)
    assert m.ExifTool._is_safe_executable_name("exiftool") is True
    assert m.ExifTool._is_safe_executable_name("bad|x") is False
    assert m.ExifTool._is_safe_executable_name("") is False
    assert m.ExifTool._resolve_executable_path("exiftool") == str(exep)
    assert m.ExifTool._looks_like_exiftool_name(str(exep)) is True
    assert m.ExifTool._looks_like_exiftool_name("/usr/bin/rm") is False

    tool = m.ExifTool(bin_name="exiftool")
    assert tool.is_available() is True
    assert tool.bin == str(exep)


def test_unavailable_tool_reports_tool_missing(monkeypatch, image: Path):
    monkeypatch.setattr(m.shutil, "which", lambda raw: None)
    tool = m.ExifTool(bin_name="definitely-not-exiftool")
    assert tool.is_available() is False
    res = tool.read(str(image))
    assert res.code == ErrorCode.TOOL_MISSING


def test_non_exiftool_binary_is_refused(monkeypatch):
    monkeypatch.setattr(m.shutil, "which", lambda raw: "/usr/bin/python3")
    assert m.ExifTool(bin_name="python3").is_available() is False


def test_read_command_shape(ex, image: Path):
    cmd = ex._build_read_command(str(image))
    assert cmd[0] == "exiftool"
    assert list(m.READ_ARGS) == cmd[1:5]
    assert cmd[-1] == str(image)


def test_read_success(ex, image: Path, monkeypatch):
    payload = json.dumps([{"SourceFile": str(image), "PNG:Parameters": "a cat\nSteps: 20"}]).encode()
    seen = {}

    def _run(cmd, *, timeout):
        seen["cmd"] = cmd
        seen["timeout"] = timeout
        return _mk_completed(stdout=payload)

    monkeypatch.setattr(ex, "_run_exiftool_process", _run)
    res = ex.read(str(image))
    assert res.ok
    assert res.data["PNG:Parameters"] == "a cat\nSteps: 20"
    assert res.meta["quality"] == "full"
    assert seen["timeout"] == 1.0


@pytest.mark.parametrize(
    "process, code",
    [
        (_mk_completed(returncode=1, stderr=b"Error: File format error"), ErrorCode.EXIFTOOL_ERROR),
        (_mk_completed(stdout=b""), ErrorCode.PARSE_ERROR),
        (_mk_completed(stdout=b"{not json"), ErrorCode.PARSE_ERROR),
        (_mk_completed(stdout=b"[]"), ErrorCode.PARSE_ERROR),
    ],
)
def test_read_failures(ex, image: Path, monkeypatch, process, code):
    monkeypatch.setattr(ex, "_run_exiftool_process", lambda cmd, *, timeout: process)
    res = ex.read(str(image))
    assert not res.ok
    assert res.code == code


def test_read_nonzero_exit_keeps_stderr_and_return_code(ex, image: Path, monkeypatch):
    monkeypatch.setattr(
        ex,
        "_run_exiftool_process",
        lambda cmd, *, timeout: _mk_completed(returncode=2, stderr=b"Error: File format error"),
    )
    res = ex.read(str(image))
    assert res.error == "Error: File format error"
    assert res.meta["return_code"] == 2


def test_read_timeout_and_unexpected_errors(ex, image: Path, monkeypatch):
    def _timeout(cmd, *, timeout):
        raise subprocess.TimeoutExpired(cmd, timeout)

    monkeypatch.setattr(ex, "_run_exiftool_process", _timeout)
    assert ex.read(str(image)).code == ErrorCode.TIMEOUT

    def _oserror(cmd, *, timeout):
        raise OSError("exec format error")

    monkeypatch.setattr(ex, "_run_exiftool_process", _oserror)
    res = ex.read(str(image))
    assert res.code == ErrorCode.EXIFTOOL_ERROR
    assert "exec format error" in res.error


def test_read_validates_path(ex, tmp_path: Path):
    assert ex.read("").code == ErrorCode.INVALID_INPUT
    assert ex.read("a\x00b").code == ErrorCode.INVALID_INPUT
    assert ex.read(str(tmp_path / "missing.png")).code == ErrorCode.NOT_FOUND
    assert ex.read(str(tmp_path)).code == ErrorCode.NOT_FOUND
