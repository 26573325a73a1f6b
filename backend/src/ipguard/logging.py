"""Structured logging configuration for IPGuard.

Provides JSON-formatted logs for production and human-readable
logs for development.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import get_settings

# Attributes present on every LogRecord; anything else came in via ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        # Add common fields from record
        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> None:
    """Configure logging based on settings."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    # Choose formatter based on environment
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Suppress noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = get_logger(__name__)
    logger.info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "log_level": settings.log_level,
            "log_format": settings.log_format,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        """Process the logging message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> LoggerAdapter:
    """Get a logger with additional context.

    Args:
        name: Logger name
        **context: Context fields to add to all log messages

    Returns:
        Logger adapter with context

    Usage:
        logger = get_context_logger(__name__, job_id="abc123")
        logger.info("Navigating")  # Includes job_id
    """
    return LoggerAdapter(get_logger(name), context)


# =========================
# Convenience functions
# =========================


def log_job_started(job_id: str, target_url: str) -> None:
    """Log the start of a monitoring job execution."""
    logger = get_logger("ipguard.monitoring")
    logger.info(
        f"Starting monitoring job {job_id}",
        extra={"job_id": job_id, "target_url": target_url, "event": "job_started"},
    )


def log_job_completed(
    job_id: str, risk_score: int, duration_seconds: float, screenshot: bool
) -> None:
    """Log the completion of a monitoring job."""
    logger = get_logger("ipguard.monitoring")
    logger.info(
        f"Completed monitoring job {job_id}",
        extra={
            "job_id": job_id,
            "risk_score": risk_score,
            "duration_seconds": duration_seconds,
            "has_screenshot": screenshot,
            "event": "job_completed",
        },
    )


def log_job_failed(job_id: str, error: str) -> None:
    """Log a monitoring job failure."""
    logger = get_logger("ipguard.monitoring")
    logger.error(
        f"Monitoring job {job_id} failed: {error}",
        extra={"job_id": job_id, "error": error, "event": "job_failed"},
    )


def log_risk_assessment(
    target_url: str,
    risk_score: int,
    recommendation: str,
    confidence: int | None,
    tokens_used: int,
) -> None:
    """Log a computed risk assessment."""
    logger = get_logger("ipguard.analysis")
    logger.info(
        f"Risk assessment for {target_url}: {risk_score}",
        extra={
            "target_url": target_url,
            "risk_score": risk_score,
            "recommendation": recommendation,
            "confidence": confidence,
            "tokens_used": tokens_used,
            "event": "risk_assessment",
        },
    )


def log_escalation(
    job_id: str, case_id: str | None, created: bool, evidence_count: int
) -> None:
    """Log the outcome of an auto-case escalation."""
    logger = get_logger("ipguard.cases")
    logger.info(
        f"Escalation for job {job_id}: case {case_id or 'none'}",
        extra={
            "job_id": job_id,
            "case_id": case_id,
            "case_created": created,
            "evidence_count": evidence_count,
            "event": "escalation",
        },
    )


def log_custody_event(
    evidence_id: str, action: str, actor: str, details: str | None = None
) -> None:
    """Log a chain-of-custody entry.

    Integrity failures are logged at WARNING so they surface in alerting.
    """
    logger = get_logger("ipguard.evidence")
    failed = action == "integrity_check" and details is not None and "FAILED" in details
    logger.log(
        logging.WARNING if failed else logging.INFO,
        f"Custody {action} on evidence {evidence_id} by {actor}",
        extra={
            "evidence_id": evidence_id,
            "action": action,
            "actor": actor,
            "details": details,
            "event": "custody_event",
        },
    )


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    actor_id: str | None = None,
) -> None:
    """Log an API request.

    Args:
        method: HTTP method
        path: Request path
        status_code: Response status code
        duration_ms: Request duration in milliseconds
        actor_id: Acting user ID from the gateway header
    """
    logger = get_logger("ipguard.api")
    logger.info(
        f"{method} {path} - {status_code}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "actor_id": actor_id,
            "event": "api_request",
        },
    )
