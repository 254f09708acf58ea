import logging
import os
import sys

from pythonjsonlogger import jsonlogger

NOISY_LOGGERS = ("pika", "httpx", "httpcore", "google_genai")

_configured = False


def setup_logging():
    """
    Configures structured JSON logging for the worker and the API.

    The first call installs a JSON formatter with timestamp, level, logger
    name, thread name, message, trace_id and span_id on the root logger and
    the Uvicorn loggers. The thread name tells the parallel generation tasks
    apart. Fields passed through `extra` are emitted as top-level keys. The
    level is read from LOG_LEVEL (default INFO). Later calls return the
    already configured root logger.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    global _configured

    root_logger = logging.getLogger()
    if _configured:
        return root_logger

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s "
        "%(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)
        u_logger.handlers = [stream_handler]
        u_logger.propagate = False

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    _configured = True
    return root_logger
