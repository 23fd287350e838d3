"""
Diagnostics for the client and CLI.

Library code only creates module loggers; ``setup_logging`` is called by the
CLI (or an embedding application) to attach handlers. Every handler carries a
``SensitiveDataFilter`` so master keys and request signatures never reach the
console or a log file.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def _secret_after(prefix: str) -> re.Pattern:
    return re.compile(rf"({prefix})[^\s\"',}};&]+", re.IGNORECASE)


class SensitiveDataFilter(logging.Filter):
    """Replace authorization tokens, signatures and keys with a marker."""

    PATTERNS = [
        _secret_after(r"authorization[\"']?\s*[:=]\s*[\"']?"),
        _secret_after(r"sig(?:=|%3D)"),
        _secret_after(r"master_?key[\"']?\s*[:=]\s*[\"']?"),
        _secret_after(r"AccountKey="),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            # Render args first so a secret passed as an argument is covered too
            message = record.getMessage()
            for pattern in self.PATTERNS:
                message = pattern.sub(rf"\1{REDACTED}", message)
            record.msg, record.args = message, ()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``context`` holds ``log_with_context`` extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _attach(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)


def setup_logging(
    level: str = "WARNING",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None,
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Root level name
        format_type: "text" or "json"
        log_file: Also write to this file, rotated by size
        rotation_size: Rotation threshold such as "10MB"
        rotation_count: Rotated files to keep
        module_levels: Per-logger overrides, e.g. {"cosmoslite.client.executor": "DEBUG"}
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    formatter = _make_formatter(format_type)

    # stdout is reserved for command output
    _attach(root, logging.StreamHandler(sys.stderr), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding="utf-8",
        )
        _attach(root, handler, formatter)

    for name, module_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(module_level.upper())

    root.debug(f"Logging configured: level={level}, format={format_type}, file={log_file}")


def _parse_size(size: str) -> int:
    """Convert "512", "100B", "10KB", "1.5MB" or "1GB" to bytes."""
    match = _SIZE_RE.match(size)
    if match is None:
        raise ValueError(f"Invalid size: '{size}'")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit.upper() if unit else None])


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with ``context`` attached to the record (omitted when empty)."""
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
