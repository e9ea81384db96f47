"""Structured logging for trip action batches."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredTripLogger:
    """Structured logger for trip action batches."""

    def log_batch(
        self,
        trip_id: str,
        user_id: str,
        client_operation_id: str,
        outcome: str,
        latency_ms: float,
        action_count: int = 0,
        version: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one batch outcome with structured data."""
        log_data: dict[str, Any] = {
            "trip_id": trip_id,
            "user_id": user_id,
            "client_operation_id": client_operation_id,
            "outcome": outcome,
            "action_count": action_count,
            "latency_ms": round(latency_ms, 2),
        }

        if version is not None:
            log_data["version"] = version
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Trip action batch: {trip_id} - {outcome}"

        if outcome in ("applied", "replayed"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_trip_created(self, trip_id: str, user_id: str) -> None:
        """Log trip creation."""
        logger.info(
            f"Trip created: {trip_id}",
            extra={"structured": {"trip_id": trip_id, "user_id": user_id}},
        )
