"""Row-change notifications for the events and registrations tables."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from eventify.realtime.channels import Channel
from eventify.schemas import EventRead, RegistrationRead

logger = logging.getLogger(__name__)

EVENTS_TOPIC = "events"

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


def registrations_topic(event_id: int) -> str:
    return f"registrations:{event_id}"


def event_record(event) -> Dict[str, Any]:
    return EventRead.model_validate(event).model_dump(mode="json")


def registration_record(registration) -> Dict[str, Any]:
    return RegistrationRead.model_validate(registration).model_dump(mode="json")


class ChangeFeed(Channel):
    """Publishes committed row changes to per-table topics.

    Delivery is in publish order per subscriber and there is no history:
    a subscriber only sees changes published while it is connected.
    """

    def __init__(self) -> None:
        super().__init__(name="change-feed")

    def publish_change(self, topic: str, table: str, change_type: str, record: Dict[str, Any]) -> int:
        message = {"table": table, "type": change_type, "record": record}
        delivered = self.publish(topic, message)
        logger.debug("%s %s id=%s -> %d subscriber(s)", change_type, table, record.get("id"), delivered)
        return delivered

    def event_changed(self, event, change_type: str = UPDATE) -> int:
        return self.publish_change(EVENTS_TOPIC, "events", change_type, event_record(event))

    def event_deleted(self, event_id: int) -> int:
        return self.publish_change(EVENTS_TOPIC, "events", DELETE, {"id": event_id})

    def registration_changed(self, registration, change_type: str = UPDATE) -> int:
        return self.publish_change(
            registrations_topic(registration.event_id),
            "registrations",
            change_type,
            registration_record(registration),
        )


_feed: Optional[ChangeFeed] = None


def get_change_feed() -> ChangeFeed:
    global _feed
    if _feed is None:
        _feed = ChangeFeed()
    return _feed
