"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from banksim.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_catch_up(
    owner_id: str,
    slot_id: int,
    previous_day: float,
    game_day: float,
    days_processed: int,
) -> None:
    """Log one clock advance that crossed at least one day boundary"""
    logging.info(
        "Game clock caught up",
        extra={
            "owner_id": owner_id,
            "slot_id": slot_id,
            "step": "clock_advance",
            "previous_game_day": previous_day,
            "game_day": game_day,
            "days_processed": days_processed,
        },
    )


def log_posting(step: str, client_id: int, game_day: int, amount: Any, **fields: Any) -> None:
    """Log a money posting made by a scheduler (payroll, rent, repayment, spending)"""
    logging.info(
        f"{step} posted",
        extra={
            "step": step,
            "client_id": client_id,
            "game_day": game_day,
            "amount": str(amount),
            **fields,
        },
    )
