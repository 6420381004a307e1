import json
import logging
import sys
import traceback
from typing import Optional

import loguru
from fastapi import Response
from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<bold><white>{message}</white></bold> | <dim>{extra}</dim> {stacktrace}"
)


# Loggers configuration runs at import time (src/persons_console/__init__.py) and again from create_app()
def configure_logger(
    log_level: str = "INFO",
    log_file_path: Optional[str] = None,
):
    """
    Configure loguru logger with a console sink and an optional JSON file sink.

    Args:
        log_level: Minimum level for the console sink
        log_file_path: Path of a JSON-serialized log file (disabled when None)
    """
    # Suppress verbose HTTP client logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.remove()  # remove the default logger

    # Add stdout handler (always enabled for console output)
    logger.add(
        sink=sys.stdout,
        level=log_level,
        diagnose=False,
        format=CONSOLE_FORMAT,
        filter=process_log_record,
    )

    if log_file_path:
        try:
            logger.add(
                sink=log_file_path,
                level=log_level,
                serialize=True,
                diagnose=False,
                enqueue=True,
            )
            logger.info("File logging enabled", log_file_path=log_file_path)
        except OSError as e:
            logger.warning(f"Failed to initialize file logging: {e}", log_file_path=log_file_path)


def process_log_record(record: "loguru.Record") -> "loguru.Record":
    r"""
    Inject transformed metadata into each log record before they are passed to the formatter.

    1. Serialize the "extra" field to JSON so that it renders on a single line.
    2. For error logs, add a traceback with \r instead of \n so that log shippers do not
       split the traceback into multiple log events.
    """
    extra = record["extra"]

    # serialize "extra" field to JSON
    if extra and not isinstance(extra, str):
        record["extra"] = json.dumps(extra, default=str)

    # add stacktrace to log record
    record["stacktrace"] = ""
    if record["exception"]:
        err = record["exception"]
        stacktrace = get_formatted_stacktrace(err, replace_newline_character_with_carriage_return=True)
        record["stacktrace"] = stacktrace

    return record


def get_formatted_stacktrace(loguru_record_exception, replace_newline_character_with_carriage_return: bool) -> str:
    """Get the formatted stacktrace for the current exception."""
    exc_type, exc_value, exc_traceback = loguru_record_exception
    stacktrace_: list[str] = traceback.format_exception(exc_type, exc_value, exc_traceback)
    stacktrace: str = "".join(stacktrace_)
    if replace_newline_character_with_carriage_return:
        stacktrace = stacktrace.replace("\n", "\r")
    return stacktrace


def log_response_info(response: Response):
    """Log the response info."""
    response_info = {
        "status_code": response.status_code,
        "headers": dict(response.headers.items()),
    }
    logger.debug("Response sent", http_response=response_info)
