# rentaldesk/core/logging_config.py

import contextvars
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from rentaldesk.core.config import settings

trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="unset")

# Give every record a trace_id so the formats below never KeyError
logger.configure(extra={"trace_id": "unset"})

BACKUP_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS}|{level: <8}|{name}:{function}:{line}|"
    "TID:{extra[trace_id]}|{message}"
)

_backup_sink_id: int | None = None


class InterceptHandler(logging.Handler):
    """Routes stdlib logging records (uvicorn, celery, pymongo) into loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        if frame is None:
            frame = logging.currentframe()
            depth = 0

        logger.opt(depth=depth, exception=record.exc_info).bind(
            trace_id=trace_id_var.get()
        ).log(level, record.getMessage())


def setup_logging():
    """Configures loguru as the main handler."""
    logger.remove()

    log_level = settings.LOG_LEVEL.upper()
    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}:{function}:{line}</cyan> | "
            "<magenta>TID:{extra[trace_id]: >12.12}</magenta> | "
            "<level>{message}</level>"
        ),
        enqueue=True,
        backtrace=True,
        diagnose=log_level == "DEBUG",
        colorize=True,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.success(f"Loguru configured. Console log level: {log_level}")


def add_backup_log_sink(log_dir: Path) -> int:
    """
    Persists log output under the backup root's logs/ directory, one file per day.
    Safe to call again; the previous sink is replaced.
    """
    global _backup_sink_id
    if _backup_sink_id is not None:
        try:
            logger.remove(_backup_sink_id)
        except ValueError:
            pass
    _backup_sink_id = logger.add(
        str(Path(log_dir) / "backup_log_{time:YYYY-MM-DD}.txt"),
        level="INFO",
        rotation="00:00",
        retention="90 days",
        enqueue=True,
        format=BACKUP_LOG_FORMAT,
        encoding="utf-8",
    )
    logger.info(f"File logging configured in: {log_dir}")
    return _backup_sink_id


async def add_trace_id_middleware(request, call_next):
    """Generates/propagates a trace id for each request."""
    request_trace_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:12]}"
    token = trace_id_var.set(request_trace_id)

    with logger.contextualize(trace_id=request_trace_id):
        client_host = request.client.host if request.client else "unknown_host"
        logger.info(f"Request START: {request.method} {request.url.path} from {client_host}")
        start_time = datetime.now(timezone.utc)
        try:
            response = await call_next(request)
            response.headers["X-Trace-ID"] = request_trace_id
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            logger.info(
                f"Request END: {request.method} {request.url.path} "
                f"Status: {response.status_code} Duration: {duration_ms:.2f}ms"
            )
            return response
        except Exception:
            duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
            logger.exception(
                f"Unhandled exception during request {request.method} {request.url.path}. Duration: {duration_ms:.2f}ms"
            )
            raise
        finally:
            trace_id_var.reset(token)
