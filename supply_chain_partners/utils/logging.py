import logging
import sys
from datetime import datetime
from pathlib import Path

from supply_chain_partners.observability.middleware import (
    JsonRequestLogFormatter,
    RequestContextFilter,
)


def setup_logging(level: str = "INFO", log_dir: Path | None = None):
    """Configure logging for the application with JSON console logs.

    File logs keep a human-readable format for local debugging; console logs use JSON.
    Request-scoped fields (request_id, method, path, status, duration_ms) are injected
    by the RequestContextFilter and middleware. Pass ``log_dir=None`` to skip the file log.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonRequestLogFormatter())
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    handlers: list[logging.Handler] = [console_handler]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_filename = log_dir / f"partners_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(log_filename)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove any existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.addFilter(RequestContextFilter())
        root_logger.addHandler(handler)

    return root_logger
