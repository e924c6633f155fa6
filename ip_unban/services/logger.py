"""Structured JSON logging for cron and Kubernetes jobs."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from ip_unban.models.workflow_outcome import Stage, WorkflowOutcome


# Run ID for correlation across log entries of one invocation
RUN_ID = str(uuid.uuid4())


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter that adds run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )
        log_record["run_id"] = RUN_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(message)s")
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    # Vendor libraries are chatty at DEBUG
    for noisy in ("urllib3", "paramiko"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def log_stage(stage: Stage, **fields: Any) -> None:
    """Log entry into a workflow stage.

    Args:
        stage: Stage being entered.
        **fields: Additional structured fields.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Entering stage {stage.value}", extra={"stage": stage.value, **fields})


def log_outcome(outcome: WorkflowOutcome) -> None:
    """Log the terminal outcome of the run.

    Failures are logged at ERROR, everything else at INFO.
    """
    logger = logging.getLogger(__name__)
    level = logging.INFO if outcome.succeeded else logging.ERROR
    logger.log(level, outcome.summary(), extra={"result": outcome.to_json()})
