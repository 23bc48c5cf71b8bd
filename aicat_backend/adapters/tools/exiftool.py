"""
ExifTool adapter for reading image container metadata.
"""
import os
import subprocess
import json
import shutil
from typing import Optional, List, Dict, Any, Tuple
from pathlib import Path

from ...config import EXIFTOOL_BIN, EXIFTOOL_TIMEOUT
from ...shared import Result, ErrorCode, get_logger

logger = get_logger(__name__)

# Family-0 groups: EXIF, PNG, IPTC, XMP, File, Composite, ...
READ_ARGS: Tuple[str, ...] = ("-j", "-G0", "-U", "-s")


def _decode_bytes_best_effort(blob: Optional[bytes]) -> Tuple[str, bool]:
    """
    Decode subprocess bytes robustly across Windows code pages.

    Returns:
      (text, had_replacement_chars)
    """
    if blob is None:
        return "", False
    if not isinstance(blob, (bytes, bytearray)):
        text = str(blob)
        return text, ("�" in text)

    raw = bytes(blob)
    if not raw:
        return "", False

    for enc in ("utf-8", "utf-8-sig"):
        try:
            return raw.decode(enc, errors="strict"), False
        except UnicodeDecodeError:
            pass

    # Windows consoles may emit the local codepage
    try:
        return raw.decode("cp1252", errors="strict"), False
    except UnicodeDecodeError:
        pass

    utf_text = raw.decode("utf-8", errors="replace")
    return utf_text, "�" in utf_text


class ExifTool:
    """
    ExifTool wrapper for metadata reads.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize ExifTool adapter.

        Args:
            bin_name: ExifTool binary name or path
            timeout: Command timeout in seconds
        """
        self.bin = bin_name or EXIFTOOL_BIN
        self.timeout = float(timeout) if timeout is not None else float(EXIFTOOL_TIMEOUT)
        self._available = self._check_available()

    @staticmethod
    def _is_safe_executable_name(raw: str) -> bool:
        if not raw:
            return False
        if "\x00" in raw or "\n" in raw or "\r" in raw:
            return False
        return not any(ch in raw for ch in ("&", "|", ";", ">", "<"))

    @staticmethod
    def _resolve_executable_path(raw: str) -> Optional[str]:
        resolved = shutil.which(raw)
        if resolved:
            return resolved
        try:
            candidate = Path(raw)
            if candidate.is_file():
                return str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
        return None

    @staticmethod
    def _looks_like_exiftool_name(resolved: str) -> bool:
        return Path(resolved).name.lower().startswith("exiftool")

    def _resolve_executable(self, bin_name: str) -> Optional[str]:
        """Resolve the configured binary, refusing anything that is not an exiftool executable."""
        raw = (bin_name or "").strip()
        if not self._is_safe_executable_name(raw):
            return None
        resolved = self._resolve_executable_path(raw)
        if not resolved:
            return None
        return resolved if self._looks_like_exiftool_name(resolved) else None

    def _check_available(self) -> bool:
        resolved = self._resolve_executable(self.bin)
        if not resolved:
            logger.debug("ExifTool not found for %r", self.bin)
            return False
        self.bin = resolved
        return True

    def is_available(self) -> bool:
        """Check if ExifTool is available."""
        return self._available

    @staticmethod
    def _validate_read_path(path: str) -> Result[str]:
        if not path or "\x00" in str(path):
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid file path", quality="none")
        p = Path(str(path))
        if not p.exists() or not p.is_file():
            return Result.Err(ErrorCode.NOT_FOUND, f"File not found: {path}", quality="none")
        return Result.Ok(str(path))

    def _build_read_command(self, path: str) -> List[str]:
        cmd = [self.bin, *READ_ARGS]
        if os.name == "nt":
            cmd.extend(["-charset", "filename=utf8"])
        cmd.append(str(path))
        return cmd

    @staticmethod
    def _run_exiftool_process(cmd: List[str], *, timeout: float) -> subprocess.CompletedProcess:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=False,
            check=False,
            timeout=timeout,
            shell=False,
        )

    @staticmethod
    def _parse_read_process(process: subprocess.CompletedProcess, path: str) -> Result[Dict[str, Any]]:
        stdout, stdout_rep = _decode_bytes_best_effort(process.stdout)
        stderr, stderr_rep = _decode_bytes_best_effort(process.stderr)
        had_replacements = bool(stdout_rep or stderr_rep)
        if had_replacements:
            logger.warning("ExifTool output contained decoding replacement characters for %s", path)

        if process.returncode != 0:
            stderr_msg = stderr.strip()
            logger.warning("ExifTool error for %s: %s", path, stderr_msg)
            return Result.Err(
                ErrorCode.EXIFTOOL_ERROR,
                stderr_msg or "ExifTool command failed",
                return_code=int(process.returncode),
                quality="degraded",
            )

        if not stdout.strip():
            return Result.Err(ErrorCode.PARSE_ERROR, "ExifTool returned empty output", quality="degraded")
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            logger.error("ExifTool JSON parse error: %s", exc)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Failed to parse ExifTool output: {exc}", quality="degraded")
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return Result.Ok(data[0], quality="full" if not had_replacements else "degraded")
        return Result.Err(ErrorCode.PARSE_ERROR, "No metadata found", quality="none")

    def read(self, path: str) -> Result[Dict[str, Any]]:
        """
        Read all tags of one file as an ExifTool `Group:Tag` dict.

        Args:
            path: File path

        Returns:
            Result with the tag dict or error
        """
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ExifTool not found in PATH", quality="none")
        path_res = self._validate_read_path(path)
        if not path_res.ok:
            return Result.Err(path_res.code, path_res.error or "Invalid file path", **(path_res.meta or {}))

        try:
            process = self._run_exiftool_process(self._build_read_command(path), timeout=self.timeout)
            return self._parse_read_process(process, path)
        except subprocess.TimeoutExpired:
            logger.error("ExifTool timeout for %s", path)
            return Result.Err(ErrorCode.TIMEOUT, f"ExifTool timeout after {self.timeout}s", quality="degraded")
        except Exception as e:
            logger.error("ExifTool unexpected error: %s", e)
            return Result.Err(ErrorCode.EXIFTOOL_ERROR, str(e), quality="degraded")
