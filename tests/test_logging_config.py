"""
Brief: Tests for unixresolver.config.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import logging.handlers
from pathlib import Path

import pytest

from unixresolver.config.logging_config import (
    BracketLevelFormatter,
    SyslogFormatter,
    init_logging,
    level_from_name,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """
    Brief: Drop handlers installed by init_logging and restore logger levels.

    Inputs:
      - None

    Outputs:
      - None
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    parser_level = logging.getLogger("unixresolver.parser").level
    yield
    for h in list(root.handlers):
        if h in handlers or type(h).__module__.startswith("_pytest"):
            continue
        root.removeHandler(h)
        h.close()
    root.setLevel(level)
    logging.getLogger("unixresolver.parser").setLevel(parser_level)
    logging.captureWarnings(False)


def test_level_from_name():
    """
    Brief: Level names map to logging constants with a fallback.

    Inputs:
      - known, mixed-case and unknown names

    Outputs:
      - None: Asserts mapped levels
    """
    assert level_from_name("warn") == logging.WARNING
    assert level_from_name(" DEBUG ") == logging.DEBUG
    assert level_from_name("crit") == logging.CRITICAL
    assert level_from_name("chatty") == logging.INFO
    assert level_from_name("chatty", logging.ERROR) == logging.ERROR


def test_init_logging_adds_stderr_handler():
    """
    Brief: init_logging configures root logger with stderr handler by default.

    Inputs:
      - cfg: minimal dict with level

    Outputs:
      - None: Asserts StreamHandler present and level applied
    """
    init_logging({"level": "debug"})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(type(h) is logging.StreamHandler for h in root.handlers)


def test_init_logging_without_stderr_has_no_handlers():
    """
    Brief: stderr: false with no other sinks leaves the root without handlers.

    Inputs:
      - cfg: stderr disabled

    Outputs:
      - None: Asserts no handlers installed
    """
    init_logging({"stderr": False})
    assert logging.getLogger().handlers == []


def test_init_logging_file_handler_writes(tmp_path):
    """
    Brief: init_logging creates parent directories and writes formatted entries.

    Inputs:
      - cfg: nested file path and level

    Outputs:
      - None: Asserts file created and contains message and tag
    """
    log_path = tmp_path / "logs" / "unixresolver.log"
    init_logging({"level": "info", "stderr": False, "file": str(log_path)})
    logging.getLogger("test").info("file message")
    for h in logging.getLogger().handlers:
        h.flush()
    content = Path(log_path).read_text()
    assert "file message" in content
    assert "[info] test: file message" in content


def test_init_logging_per_logger_levels():
    """
    Brief: The loggers mapping sets levels on named loggers.

    Inputs:
      - cfg: loggers mapping for unixresolver.parser

    Outputs:
      - None: Asserts logger level
    """
    init_logging({"level": "warn", "stderr": False, "loggers": {"unixresolver.parser": "debug"}})
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("unixresolver.parser").level == logging.DEBUG


def test_init_logging_syslog_success(monkeypatch):
    """
    Brief: init_logging attaches a syslog handler when configured.

    Inputs:
      - syslog: True or dict

    Outputs:
      - None: Asserts dummy handler receives address/facility and formatter
    """
    created = {}

    class DummySysLogHandler(logging.Handler):
        LOG_USER = 8
        LOG_LOCAL0 = 128

        def __init__(self, address=None, facility=None):
            super().__init__()
            created["address"] = address
            created["facility"] = facility

        def setFormatter(self, fmt):
            created["formatter"] = fmt

        def emit(self, record):
            pass

    monkeypatch.setattr(logging.handlers, "SysLogHandler", DummySysLogHandler)
    init_logging({"stderr": False, "syslog": True})
    assert created["address"] == "/dev/log"
    assert created["facility"] == DummySysLogHandler.LOG_USER
    assert isinstance(created["formatter"], SyslogFormatter)

    created.clear()
    init_logging({"stderr": False, "syslog": {"address": ["localhost", 514], "facility": "local0"}})
    assert created["address"] == ("localhost", 514)
    assert created["facility"] == DummySysLogHandler.LOG_LOCAL0


def test_formatters_produce_expected_tags():
    """
    Brief: BracketLevelFormatter and SyslogFormatter include bracketed tags.

    Inputs:
      - LogRecord instances at different levels

    Outputs:
      - None: Asserts formatted strings contain expected tags and UTC stamp
    """
    fmt = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")
    rec = logging.LogRecord("n", logging.ERROR, __file__, 1, "m", (), None)
    rec.created = 0.0
    out = fmt.format(rec)
    assert out == "1970-01-01T00:00:00Z [error] n: m"

    s = SyslogFormatter()
    rec2 = logging.LogRecord("n2", logging.WARNING, __file__, 2, "m2", (), None)
    assert s.format(rec2) == "[warn] n2: m2"
    rec3 = logging.LogRecord("n3", 5, __file__, 3, "m3", (), None)
    assert s.format(rec3) == "[lvl5] n3: m3"


def test_init_logging_reinit_replaces_handlers(tmp_path):
    """
    Brief: A second init_logging call swaps sinks instead of stacking them.

    Inputs:
      - cfg: file sink, then stderr only

    Outputs:
      - None: Asserts one handler after each call and no further file writes
    """
    log_path = tmp_path / "first.log"
    init_logging({"stderr": False, "file": str(log_path)})
    assert [type(h) for h in logging.getLogger().handlers] == [logging.FileHandler]

    init_logging({"level": "info"})
    handlers = logging.getLogger().handlers
    assert [type(h) for h in handlers] == [logging.StreamHandler]
    assert isinstance(handlers[0].formatter, BracketLevelFormatter)

    logging.getLogger("test").info("after reinit")
    assert "after reinit" not in log_path.read_text()
