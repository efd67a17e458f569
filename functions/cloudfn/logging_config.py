"""Structured logging for Google Cloud Functions.

Emits one JSON object per line on stdout, which Cloud Logging parses into
severity, message and jsonPayload fields.
"""
import logging
import json
import os
import sys
from typing import Any, Optional

LOG_LEVEL_ENV = "LOG_LEVEL"


class JSONFormatter(logging.Formatter):
    """Format records as Cloud Logging compatible JSON.

    Cloud Logging reads "severity" and "message" from each line and keeps
    the remaining keys as jsonPayload fields for filtering.
    """

    def __init__(self, component: str):
        """Initialize formatter with the component name.

        Args:
            component: Library or function name stamped on every line
                (e.g. "cloudfn", "campaigns")
        """
        super().__init__()
        self.component = component

    def format(self, record: logging.LogRecord) -> str:
        """Render a record as one JSON line.

        Structured fields passed to CloudFunctionLogger arrive on
        record.extra and are merged in; an attached exception is rendered
        as its formatted traceback.

        Args:
            record: Log record to format

        Returns:
            JSON string with severity, message, component and extra fields
        """
        log_obj = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "component": self.component,
        }

        if hasattr(record, "extra"):
            log_obj.update(record.extra)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # default=str keeps odd field values from breaking the log line
        return json.dumps(log_obj, default=str)


def _level_from_env() -> int:
    """Resolve LOG_LEVEL to a logging level, defaulting to INFO."""
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class CloudFunctionLogger:
    """Structured logger bound to one component name.

    Example:
        logger = CloudFunctionLogger("campaigns")
        logger.info("Campaign created", campaign_id="spring-sale")
        logger.error("Request failed", status=500, detail=detail_of(err))
    """

    def __init__(self, component: str, level: Optional[int] = None):
        """Initialize logger for a component.

        Args:
            component: Name of the cloud function or library
            level: Logging level; read from LOG_LEVEL when omitted
        """
        self.component = component
        self.logger = self._setup_logger(
            level if level is not None else _level_from_env())

    def _setup_logger(self, level: int) -> logging.Logger:
        """Attach a single stdout JSON handler to the component logger.

        Args:
            level: Minimum level to emit

        Returns:
            The configured stdlib logger
        """
        logger = logging.getLogger(self.component)
        logger.setLevel(level)
        logger.propagate = False

        # Replace handlers so re-imports don't duplicate output
        logger.handlers = []

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter(self.component))
        logger.addHandler(handler)

        return logger

    def _log(self, level: int, message: str, exc_info=None, **kwargs: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        record = self.logger.makeRecord(
            self.component, level, "", 0, message, (), exc_info
        )
        record.extra = kwargs
        self.logger.handle(record)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message; emitted only at DEBUG level."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with structured data."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with structured data."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with structured data."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error with the traceback of the exception being handled."""
        exc_info = sys.exc_info()
        self._log(logging.ERROR, message,
                  exc_info=exc_info if exc_info[0] is not None else None,
                  **kwargs)
