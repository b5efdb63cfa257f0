import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno",
    "pathname", "filename", "module", "exc_info",
    "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "message",
    "taskName",
}

_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "google", "grpc")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed via `extra=` are merged into the top level; a field that
    collides with a base key is kept as `extra_<key>`.
    """

    def format(self, record: logging.LogRecord) -> str:

        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():

            if key.startswith("_") or key in _RESERVED_ATTRS:
                continue

            if key in entry:
                entry[f"extra_{key}"] = value
            else:
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_query_started(logger, request_id, question, documents, history_turns):

    logger.info(
        "chat_started",
        extra={
            "request_id": request_id,
            "question_length": len(question),
            "documents": documents,
            "history_turns": history_turns,
        },
    )


def log_query_completed(logger, request_id, latency_seconds, result):

    logger.info(
        "chat_completed",
        extra={
            "request_id": request_id,
            "latency_seconds": round(latency_seconds, 3),
            "refused": result.get("refused"),
            "failed": result.get("failed"),
            "strategy": result.get("strategy"),
            "sources_used": result.get("sources_used"),
            "reasoning": result.get("reasoning"),
        },
    )
