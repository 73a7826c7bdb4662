"""Outbound fraud engine events.

Publishing is fire-and-forget: a failing notifier is logged and never
propagates into the evaluation, review or case-management paths.
"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

import structlog

from src.shared.kafka_utils import produce_event

logger = structlog.get_logger()

SOURCE_SERVICE = "relief-fraud-engine"


class EventType(StrEnum):
    TRANSACTION_FLAGGED = "transaction.flagged"
    REPORT_CREATED = "report.created"
    REPORT_STATUS_CHANGED = "report.status-changed"
    REVIEW_DECIDED = "review.decided"


class EventPublisher(Protocol):
    async def publish(self, event: dict) -> None: ...


def build_event(event_type: EventType, payload: dict, partition_key: str | None = None) -> dict:
    return {
        "partition_key": partition_key,
        "event_id": str(uuid.uuid4()),
        "event_type": event_type.value,
        "timestamp": datetime.now(UTC).isoformat(),
        "source_service": SOURCE_SERVICE,
        "payload": payload,
    }


class InMemoryEventPublisher:
    """Collects events in memory (tests, local runs)."""

    def __init__(self) -> None:
        self.events: list[dict] = []

    async def publish(self, event: dict) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[dict]:
        return [e for e in self.events if e["event_type"] == event_type.value]


class KafkaEventPublisher:
    """Publishes events to Kafka through an aiokafka producer."""

    def __init__(self, producer) -> None:
        self._producer = producer

    async def publish(self, event: dict) -> None:
        await produce_event(self._producer, event, key=event.get("partition_key"))


async def emit(
    publisher: EventPublisher | None,
    event_type: EventType,
    payload: dict,
    partition_key: str | None = None,
) -> None:
    """Build and publish an event, swallowing notifier failures."""
    if publisher is None:
        logger.debug("event_publisher_not_available", event_type=event_type.value)
        return

    event = build_event(event_type, payload, partition_key)
    try:
        await publisher.publish(event)
    except Exception:
        logger.exception(
            "event_publish_failed", event_type=event_type.value, event_id=event["event_id"]
        )
