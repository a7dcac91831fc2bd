"""Logging setup for programs that bootstrap name servers with unixresolver.

Brief:
  The library itself only logs through module-level loggers
  (``unixresolver.parser``, ``unixresolver.provider`` ...). ``init_logging``
  is the optional host-side switch, driven by the ``logging`` mapping of the
  settings file, that routes those records to stderr, a file and/or syslog
  with bracketed lowercase level tags such as ``[warn]``.

Inputs:
  - cfg mapping: level, stderr, file, syslog, loggers (see ``init_logging``).

Outputs:
  - Root logger reconfigured in place; nothing is returned.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple, Union

LINE_FORMAT = "%(asctime)s %(level_tag)s %(name)s: %(message)s"
DEFAULT_SYSLOG_ADDRESS = "/dev/log"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def level_from_name(name: Any, default: int = logging.INFO) -> int:
    """Map a level name such as "warn" or "debug" to a logging constant."""
    return _LEVELS.get(str(name).strip().lower(), default)


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Tag, logger name and message only; syslog stamps the time itself."""

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter exposing ``%(level_tag)s`` and rendering asctime in UTC."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        return stamp.strftime(datefmt or "%Y-%m-%dT%H:%M:%SZ")

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def _file_handler(file_path: str, formatter: logging.Formatter) -> logging.Handler:
    path = os.path.abspath(os.path.expanduser(file_path))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def _syslog_target(syslog_cfg: Any) -> Tuple[Union[str, Tuple[str, int]], int]:
    """
    Brief: Work out the syslog address and facility from a ``syslog`` value.

    Inputs:
      - syslog_cfg: True, or a mapping with optional ``address`` (socket path
        or [host, port]) and ``facility`` (name such as "local0").

    Outputs:
      - (address, facility) pair for logging.handlers.SysLogHandler.
    """
    syslog_cls = logging.handlers.SysLogHandler
    if not isinstance(syslog_cfg, Mapping):
        return DEFAULT_SYSLOG_ADDRESS, syslog_cls.LOG_USER

    address = syslog_cfg.get("address", DEFAULT_SYSLOG_ADDRESS)
    if isinstance(address, (list, tuple)):
        address = (str(address[0]), int(address[1]))
    facility_name = str(syslog_cfg.get("facility", "USER")).upper()
    return address, getattr(syslog_cls, f"LOG_{facility_name}", syslog_cls.LOG_USER)


def _build_handlers(cfg: Mapping[str, Any]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    formatter = BracketLevelFormatter(fmt=LINE_FORMAT)

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        handlers.append(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        handlers.append(_file_handler(file_path.strip(), formatter))

    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        address, facility = _syslog_target(syslog_cfg)
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=address, facility=facility
            )
        except (OSError, ValueError) as e:  # pragma: no cover - environment-specific
            logging.getLogger(__name__).warning("Failed to configure syslog: %s", e)
        else:
            syslog_handler.setFormatter(SyslogFormatter())
            handlers.append(syslog_handler)

    return handlers


def init_logging(cfg: Optional[Mapping[str, Any]]) -> None:
    """
    Brief: Route unixresolver (and other) log records according to ``cfg``.

    Inputs:
      - cfg: Mapping with optional keys:
          - level: debug, info, warn, error, crit (default: info)
          - stderr: log to stderr (default: True)
          - file: path of an append-mode log file; parents are created
          - syslog: True, or {"address": "/dev/log" | [host, port],
            "facility": "user"}
          - loggers: logger name -> level, e.g. {"unixresolver.parser": "debug"}

    Outputs:
      - None. Handlers already on the root logger are replaced, so calling
        this again reconfigures instead of duplicating output.

    Example:
      >>> init_logging({"level": "warn", "stderr": False})  # doctest: +SKIP
    """
    cfg = cfg or {}
    level = level_from_name(cfg.get("level", "info"))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(level)
    for handler in _build_handlers(cfg):
        root.addHandler(handler)

    for name, lvl in (cfg.get("loggers") or {}).items():
        logging.getLogger(str(name)).setLevel(level_from_name(lvl, level))

    logging.captureWarnings(True)
