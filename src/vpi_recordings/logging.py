import logging
import os
import sys

from pythonjsonlogger import jsonlogger

_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")
_handler: logging.Handler | None = None


def _build_handler() -> logging.Handler:
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configures structured JSON logging on stdout.

    The root logger and the uvicorn loggers share one JSON handler carrying
    timestamp, level, logger name, message and the ddtrace trace/span ids.
    Repeated calls reuse the installed handler and only adjust the level,
    which defaults to the ``LOG_LEVEL`` environment variable (INFO).

    Returns:
        logging.Logger: The configured root logger instance.
    """
    global _handler

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)

    if _handler is None:
        _handler = _build_handler()
        root_logger.handlers = [_handler]
        for logger_name in _SERVER_LOGGERS:
            server_logger = logging.getLogger(logger_name)
            server_logger.handlers = [_handler]
            server_logger.propagate = False

    for logger_name in _SERVER_LOGGERS:
        logging.getLogger(logger_name).setLevel(resolved_level)

    return root_logger
