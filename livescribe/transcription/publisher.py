"""Session publisher module for pub/sub event publishing."""

import logging
import uuid
from typing import Any, Dict, Optional

from pubsub import pub

from ..models.events import SessionEvent, SNAPSHOT_TOPIC, SESSION_EVENT_TOPIC
from ..models.session import SessionSnapshot

logger = logging.getLogger(__name__)


class SessionPublisher:
    """Publishes controller snapshots and lifecycle events using pubsub.pub."""

    def __init__(self,
                 snapshot_topic: str = SNAPSHOT_TOPIC,
                 event_topic: str = SESSION_EVENT_TOPIC):
        """Initialize session publisher.

        Args:
            snapshot_topic: Topic receiving a SessionSnapshot after every change
            event_topic: Topic receiving SessionEvent lifecycle events
        """
        self.snapshot_topic = snapshot_topic
        self.event_topic = event_topic
        logger.info(f"SessionPublisher initialized with topics: {snapshot_topic}, {event_topic}")

    def publish_snapshot(self, snapshot: SessionSnapshot) -> None:
        pub.sendMessage(self.snapshot_topic, snapshot=snapshot)

    def publish_event(self, event_type: str, metadata: Optional[Dict[str, Any]] = None) -> SessionEvent:
        """Publish a lifecycle event.

        Args:
            event_type: Kind of event ("started", "finished", ...)
            metadata: Extra event data

        Returns:
            The published event
        """
        event = SessionEvent(
            event_id=uuid.uuid4().hex,
            event_type=event_type,
            metadata=metadata or {},
        )
        pub.sendMessage(self.event_topic, event=event)
        logger.debug(f"Published session event: {event_type}")
        return event
