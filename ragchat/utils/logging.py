"""Logging configuration and structured context-injection logging."""

import logging
import sys
from typing import Any

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Install a single stdout handler with ISO timestamps on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Chatty third-party clients
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


class ContextEventLogger:
    """Structured logger for context injection decisions."""

    def log_decision(
        self,
        *,
        mode: str,
        outcome: str,
        message_count: int,
        context_chars: int = 0,
        error_reason: str | None = None,
    ) -> None:
        """Log one injection decision with structured data."""
        log_data: dict[str, Any] = {
            "mode": mode,
            "outcome": outcome,
            "message_count": message_count,
            "context_chars": context_chars,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Context injection: {mode} - {outcome}"

        if outcome == "error":
            logger.warning(log_msg, extra={"structured": log_data})
        else:
            logger.info(log_msg, extra={"structured": log_data})
