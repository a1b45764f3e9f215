"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- user_id
- batch_ids
- duration_ms

Usage:
    from app.utils.logging import configure_logging, log_credits_deducted

    configure_logging('grader-api', 'INFO')
    log_credits_deducted(logger, user_id='123', amount=3, batch_ids=['b1'], label='Essay 1')
"""
import logging
import sys
from typing import Optional, Dict, Any, List
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (e.g. grader-api)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        # Create JSON formatter
        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Create console handler
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        # Configure root logger
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        user_id: Optional user ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if user_id:
        extra["user_id"] = user_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Ledger event functions

def log_credits_allocated(
    logger: logging.Logger,
    user_id: str,
    batch_id: str,
    amount: int,
    tier: str,
    expires_at: Optional[str] = None,
    **kwargs
):
    """
    Log creation of a credit batch.

    Args:
        logger: Logger instance
        user_id: Owner of the batch (required)
        batch_id: New batch ID (required)
        amount: Batch size (required)
        tier: Tier recorded on the batch (required)
        expires_at: Optional ISO expiry timestamp
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="credits_allocated",
        user_id=user_id,
        batch_id=batch_id,
        amount=amount,
        tier=tier,
        **kwargs
    )
    if expires_at:
        extra["expires_at"] = expires_at

    logger.info(f"Allocated {amount} {tier} credits to user {user_id}", extra=extra)


def log_credits_deducted(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    batch_ids: List[str],
    label: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a successful deduction.

    Args:
        logger: Logger instance
        user_id: Owner (required)
        amount: Credits deducted (required)
        batch_ids: Batches drawn from, in draw order (required)
        label: Operation label (required)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="credits_deducted",
        user_id=user_id,
        duration_ms=duration_ms,
        amount=amount,
        batch_ids=batch_ids,
        label=label,
        **kwargs
    )

    logger.info(f"Deducted {amount} credits from user {user_id}", extra=extra)


def log_deduction_rejected(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    available: int,
    label: Optional[str] = None,
    **kwargs
):
    """
    Log a deduction refused for lack of credits (nothing was consumed).

    Args:
        logger: Logger instance
        user_id: Owner (required)
        amount: Credits requested (required)
        available: Credits available at planning time (required)
        label: Optional operation label
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="deduction_rejected",
        user_id=user_id,
        amount=amount,
        available=available,
        **kwargs
    )
    if label:
        extra["label"] = label

    logger.warning(
        f"Insufficient credits for user {user_id}: requested {amount}, available {available}",
        extra=extra
    )


def log_deduction_shortfall(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    label: str,
    error: Optional[str] = None,
    **kwargs
):
    """
    Log a paid operation whose credits could not be charged afterwards.

    Args:
        logger: Logger instance
        user_id: Owner (required)
        amount: Credits that should have been charged (required)
        label: Operation label (required)
        error: Optional error message
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="deduction_shortfall",
        user_id=user_id,
        amount=amount,
        label=label,
        **kwargs
    )
    if error:
        extra["error"] = str(error)

    logger.error(
        f"Operation '{label}' delivered without charging {amount} credits to user {user_id}",
        extra=extra
    )


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
