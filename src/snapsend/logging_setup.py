from __future__ import annotations

import json
import logging
import logging.config
import os
from contextvars import ContextVar

_CURRENT_REF_CODE: ContextVar[str] = ContextVar("snapsend_ref_code", default="-")
_STANDARD_LOGRECORD_ATTRS = {
    "name",
    "msg",
    "message",
    "asctime",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class _RefCodeFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "ref_code") or getattr(record, "ref_code") in (None, ""):
            record.ref_code = _CURRENT_REF_CODE.get()
        return True


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extract_extras(record)
        if not extras:
            return base
        extras_json = json.dumps(extras, indent=2, default=str, sort_keys=True)
        return f"{base}\n{extras_json}"


def _extract_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOGRECORD_ATTRS:
            continue
        if key == "ref_code":
            continue
        extras[key] = value
    return extras


def set_ref_code(ref_code: str | None) -> None:
    """Set the `ref_code` value injected into log records.

    Scoped to the current asyncio task (and tasks it spawns afterwards).
    """
    _CURRENT_REF_CODE.set(ref_code or "-")


def get_ref_code() -> str:
    return _CURRENT_REF_CODE.get()


def _install_ref_code_filter() -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(f, _RefCodeFilter) for f in handler.filters):
            continue
        handler.addFilter(_RefCodeFilter())


def configure_logging(*, log_level: str = "INFO", ref_code: str | None = None) -> None:
    """Configure root logging with a consistent format.

    Format includes `ref_code` plus `module:lineno` so every line of one
    submission can be grepped together.
    """
    console_level_name = str(log_level).upper()
    default_console_fmt = (
        "%(asctime)s %(levelname)s [%(ref_code)s] "
        "%(module)s %(pathname)s:%(lineno)d %(message)s"
    )
    console_fmt = os.getenv("CONSOLE_LOG_FORMAT", default_console_fmt)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "snapsend.logging_setup._JsonExtraFormatter",
                    "format": console_fmt,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    _install_ref_code_filter()
    set_ref_code(ref_code)
    logging.captureWarnings(True)

    # Reduce noisy third-party request logs by default.
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
