"""
Configuration for the AI Tools Catalog metadata engine.

Every value can be overridden through an `AICAT_*` environment variable.
"""
import os
import logging

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "enabled"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    raw = _env_raw(*names)
    if raw is None:
        return default
    value = raw.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
    return default


def _env_choice(default: str, choices: tuple[str, ...], *names: str) -> str:
    raw = _env_raw(*names)
    if raw is None:
        return default
    value = raw.lower()
    if value not in choices:
        logger.warning("Invalid value for %s=%r, expected one of %s", names[0] if names else "<unknown>", raw, ", ".join(choices))
        return default
    return value


EXIFTOOL_BIN = _env_raw("AICAT_EXIFTOOL_BIN", default="exiftool") or "exiftool"
EXIFTOOL_TIMEOUT = _env_int(15, "AICAT_EXIFTOOL_TIMEOUT", min_value=1, max_value=300)

METADATA_READER = _env_choice("auto", ("auto", "exiftool", "pillow"), "AICAT_METADATA_READER")
METADATA_CACHE_ENABLED = _env_bool(True, "AICAT_METADATA_CACHE_ENABLED")
METADATA_CACHE_TTL_SECONDS = _env_float(300.0, "AICAT_METADATA_CACHE_TTL", min_value=1.0, max_value=7.0 * 24.0 * 3600.0)
METADATA_CACHE_MAX_ENTRIES = _env_int(1024, "AICAT_METADATA_CACHE_SIZE", min_value=1, max_value=100_000)

# Text blocks above this size are not JSON-decoded
MAX_METADATA_JSON_SIZE = _env_int(10 * 1024 * 1024, "AICAT_MAX_METADATA_JSON_SIZE", min_value=64 * 1024, max_value=64 * 1024 * 1024)

# Upper bound for one request's worker-thread read
TO_THREAD_TIMEOUT_S = _env_float(30.0, "AICAT_TO_THREAD_TIMEOUT", min_value=1.0, max_value=600.0)
