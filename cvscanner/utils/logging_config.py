"""
Logging setup for the CV Scanner API

Every record carries the ID of the HTTP request it was logged under, so one
match (two embedding calls, the narrative call, the error) can be followed
through the log.
"""
import functools
import logging
import logging.config
import os
import time
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

NO_REQUEST = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST)

FORMATS = {
    "simple": "%(levelname)s - [%(request_id)s] %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(request_id)-36s | %(name)-35s | %(message)s",
}

# level None means "take LOG_LEVEL"
ENVIRONMENTS: Dict[str, Dict[str, Any]] = {
    "production": {"level": None, "enable_file": True, "format_style": "detailed"},
    "development": {"level": "DEBUG", "enable_file": True, "format_style": "detailed"},
    "testing": {"level": "WARNING", "enable_file": False, "format_style": "simple"},
}


def bind_request_id(request_id: str):
    """Tag everything logged from the current task (and threads it starts) with request_id.

    Returns the token for _request_id.reset().
    """
    return _request_id.set(request_id)


def reset_request_id(token) -> None:
    _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Fills record.request_id from extra={"request_id": ...} or the bound request"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = _request_id.get()
        return True


def setup_logging(level: str = "INFO", enable_file: bool = True, format_style: str = "detailed") -> None:
    """
    Console logging always; with enable_file, a rotating daily file under LOG_DIR
    plus a second file holding only errors.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style,
            "filters": ["request_id"],
            "stream": "ext://sys.stdout",
        }
    }

    if enable_file:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(exist_ok=True)
        day = datetime.now().strftime('%Y%m%d')
        for name, file_level, filename in (
            ("file", level, f"cv_scanner_{day}.log"),
            ("error_file", "ERROR", f"cv_scanner_errors_{day}.log"),
        ):
            handlers[name] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": file_level,
                "formatter": "detailed",
                "filters": ["request_id"],
                "filename": str(log_dir / filename),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "encoding": "utf8",
            }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, fmt in FORMATS.items()
        },
        "handlers": handlers,
        "loggers": {
            "": {"level": level, "handlers": list(handlers), "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": list(handlers), "propagate": False},
        },
    })

    get_logger("logging").info(f"Logging configured - Level: {level}, File: {enable_file}")


def configure_for_environment() -> None:
    """Pick the ENVIRONMENTS entry for $ENVIRONMENT (unknown names get the production setup)"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    options = dict(ENVIRONMENTS.get(environment, ENVIRONMENTS["production"]))
    options["level"] = options["level"] or os.getenv("LOG_LEVEL", "INFO").upper()
    setup_logging(**options)


def get_logger(name: str) -> logging.Logger:
    """cvscanner.services.graph -> cv_scanner.cvscanner.services.graph"""
    return logging.getLogger(f"cv_scanner.{name}")


def log_function_call(func):
    """Log entry, duration and failure of an async pipeline entry point"""
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        logger.debug(f"Entering {func.__qualname__}")
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{func.__qualname__} failed after {time.perf_counter() - start:.3f}s: {e}")
            raise
        logger.debug(f"Completed {func.__qualname__} in {time.perf_counter() - start:.3f}s")
        return result

    return wrapper


class PerformanceMonitor:
    """Times one call to the Gemini API; slow calls are logged as warnings"""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("gemini")
        self.threshold_ms = threshold_ms
        self.elapsed_ms: Optional[float] = None
        self._start = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
        if exc_type is not None:
            self.logger.warning(f"Gemini {self.operation_name} failed after {self.elapsed_ms:.0f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"Gemini {self.operation_name} took {self.elapsed_ms:.0f}ms (threshold {self.threshold_ms:.0f}ms)"
            )
        else:
            self.logger.info(f"Gemini {self.operation_name} took {self.elapsed_ms:.0f}ms")
        return False
