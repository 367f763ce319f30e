"""
Structured Logging Infrastructure

JSON log lines carrying two context fields:
- correlation_id: one admin request or one scheduled job
- store_id: the store whose Mailjet account is being synced right now

so a single sync run can be followed across all of its remote calls.
"""
import logging
import json
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator
from contextvars import ContextVar
from functools import wraps

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
store_id_var: ContextVar[int | None] = ContextVar("store_id", default=None)


class JSONFormatter(logging.Formatter):
    """שורת JSON אחת לכל רשומת לוג"""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        store_id = store_id_var.get()
        if store_id is not None:
            entry["store_id"] = store_id

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["extra"] = extra_data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger(logging.Logger):
    """Logger שמקבל extra_data=dict בכל רמת לוג"""

    def _emit(self, level: int, msg: str, args: tuple, extra_data: dict[str, Any] | None, **kwargs) -> None:
        if not self.isEnabledFor(level):
            return
        if extra_data:
            kwargs["extra"] = {**kwargs.get("extra", {}), "extra_data": extra_data}
        # funcName/line of the caller, not of this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._log(level, msg, args, **kwargs)

    def debug(self, msg: str, *args, extra_data: dict[str, Any] | None = None, **kwargs) -> None:
        self._emit(logging.DEBUG, msg, args, extra_data, **kwargs)

    def info(self, msg: str, *args, extra_data: dict[str, Any] | None = None, **kwargs) -> None:
        self._emit(logging.INFO, msg, args, extra_data, **kwargs)

    def warning(self, msg: str, *args, extra_data: dict[str, Any] | None = None, **kwargs) -> None:
        self._emit(logging.WARNING, msg, args, extra_data, **kwargs)

    def error(self, msg: str, *args, extra_data: dict[str, Any] | None = None, **kwargs) -> None:
        self._emit(logging.ERROR, msg, args, extra_data, **kwargs)


logging.setLoggerClass(StructuredLogger)


class ContextFilter(logging.Filter):
    """מוסיף correlation_id ו-store_id לרשומה עבור פורמט הטקסט"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        store_id = store_id_var.get()
        record.store_id = "-" if store_id is None else store_id
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    app_name: str = "mailjet-sync"
) -> None:
    """
    Configure root logging.

    Args:
        level: Logging level name.
        json_format: JSON lines (production) or a readable text format (DEBUG).
        app_name: Name of the emitting application.
    """
    numeric_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            f"%(asctime)s | %(levelname)-8s | {app_name} | %(name)s "
            "| [%(correlation_id)s store=%(store_id)s] | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    # ספריות צד שלישי רועשות
    for noisy in ("httpx", "httpcore", "aiosmtplib", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def set_correlation_id(correlation_id: str | None = None) -> str:
    cid = correlation_id or generate_correlation_id()
    correlation_id_var.set(cid)
    return cid


def get_correlation_id() -> str:
    """ה-correlation id הנוכחי. נוצר ונשמר אם עדיין לא הוגדר."""
    cid = correlation_id_var.get()
    if not cid:
        cid = set_correlation_id()
    return cid


@contextmanager
def bind_store(store_id: int | None) -> Iterator[None]:
    """כל הלוגים בתוך הבלוק מסומנים ב-store_id"""
    token = store_id_var.set(store_id)
    try:
        yield
    finally:
        store_id_var.reset(token)


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)  # type: ignore


def mask_secret(value: str | None, visible: int = 4) -> str:
    """מיסוך מפתח API ללוגים - משאיר רק את התווים האחרונים"""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def log_async_operation(operation_name: str):
    """
    Decorator: לוג התחלה/סיום/כשלון עם משך זמן.

    אם התוצאה היא דוח סנכרון (יש לה to_dict), הספירות שלו נכנסות
    ללוג הסיום.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            started = time.monotonic()
            logger.debug(
                f"Starting {operation_name}",
                extra_data={"operation": operation_name, "status": "started"}
            )

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {operation_name}: {e}",
                    extra_data={
                        "operation": operation_name,
                        "status": "failed",
                        "duration_seconds": round(time.monotonic() - started, 3),
                        "error": str(e),
                    },
                    exc_info=True
                )
                raise

            extra: dict[str, Any] = {
                "operation": operation_name,
                "status": "completed",
                "duration_seconds": round(time.monotonic() - started, 3),
            }
            if hasattr(result, "to_dict"):
                extra["report"] = result.to_dict()
            logger.info(f"Completed {operation_name}", extra_data=extra)
            return result

        return wrapper
    return decorator
