import json
import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Extra record attributes copied into JSON output, as (record attribute, JSON key)
_CONTEXT_FIELDS = (
    ("request_id", "request_id"),
    ("method", "method"),
    ("path", "path"),
    ("status_code", "status"),
    ("duration_ms", "duration_ms"),
    ("consistency_warning", "consistency_warning"),
)


class RequestContextFilter(logging.Filter):
    """Make sure every record carries a request_id, even outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


class JsonRequestLogFormatter(logging.Formatter):
    """Render logs as single-line JSON including request context if present."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr, key in _CONTEXT_FIELDS:
            if hasattr(record, attr):
                base[key] = getattr(record, attr)
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


class RequestIdAndTimingMiddleware(BaseHTTPMiddleware):
    """Assign request_id, measure latency, and emit structured access log per request."""

    def __init__(self, app, logger_name: str = "access"):
        super().__init__(app)
        self.access_logger = logging.getLogger(f"supply_chain_partners.{logger_name}")
        self._ensure_logger_handlers(self.access_logger)

    def _ensure_logger_handlers(self, logger: logging.Logger) -> None:
        has_json = any(isinstance(h.formatter, JsonRequestLogFormatter) for h in logger.handlers)
        if not has_json:
            handler = logging.StreamHandler()
            handler.setFormatter(JsonRequestLogFormatter())
            logger.addHandler(handler)
        has_filter = any(isinstance(f, RequestContextFilter) for f in logger.filters)
        if not has_filter:
            logger.addFilter(RequestContextFilter())
        logger.propagate = False

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            self._emit_log(
                level=logging.ERROR,
                message=f"Unhandled error: {exc}",
                request=request,
                status_code=500,
                duration_ms=duration_ms,
            )
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["x-request-id"] = request_id
        self._emit_log(
            level=logging.INFO,
            message="request_completed",
            request=request,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response

    def _emit_log(
        self, level: int, message: str, request: Request, status_code: int, duration_ms: int
    ) -> None:
        extra = {
            "request_id": getattr(request.state, "request_id", "-"),
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        self.access_logger.log(level, message, extra=extra)
