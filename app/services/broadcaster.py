"""
Realtime fan-out of request events to WebSocket subscribers.

Clients connect, then explicitly join topics: the admin-wide topic or one
residence+block topic. Delivery is fire-and-forget: no history, no replay and
no retry. A client that misses an event catches up on its next list fetch.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class TopicKind(str, Enum):
    ADMIN = "admin"
    BLOCK = "block"


@dataclass(frozen=True)
class Topic:
    kind: TopicKind
    residence: str | None = None
    block: str | None = None

    @classmethod
    def admin(cls) -> "Topic":
        return cls(TopicKind.ADMIN)

    @classmethod
    def for_block(cls, residence: str, block: str) -> "Topic":
        return cls(TopicKind.BLOCK, residence, block)

    def __str__(self) -> str:
        if self.kind is TopicKind.ADMIN:
            return "admin"
        return f"block:{self.residence}:{self.block}"


class EventKind(str, Enum):
    REQUEST_CREATED = "new-request"
    REQUEST_UPDATED = "request-updated"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    payload: Dict[str, Any]

    def message(self) -> Dict[str, Any]:
        return {"event": self.kind.value, "data": self.payload}


class Broadcaster:
    """Tracks connections and the topics each one has joined."""

    def __init__(self):
        # connection_id -> websocket
        self._connections: Dict[str, WebSocket] = {}
        # connection_id -> joined topics
        self._memberships: Dict[str, Set[Topic]] = {}

    def connect(self, websocket: WebSocket) -> str:
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = websocket
        self._memberships[connection_id] = set()
        logger.debug("Realtime client connected: %s", connection_id)
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        topics = self._memberships.pop(connection_id, None)
        if topics is not None:
            logger.debug(
                "Realtime client disconnected: %s (left %d topics)",
                connection_id,
                len(topics),
            )

    def join(self, connection_id: str, topic: Topic) -> None:
        if connection_id not in self._memberships:
            raise KeyError(connection_id)
        self._memberships[connection_id].add(topic)
        logger.debug("Connection %s joined %s", connection_id, topic)

    def leave(self, connection_id: str, topic: Topic) -> None:
        self._memberships.get(connection_id, set()).discard(topic)

    def topics_of(self, connection_id: str) -> Set[Topic]:
        return set(self._memberships.get(connection_id, ()))

    def subscribers(self, topics: Iterable[Topic]) -> list[str]:
        wanted = set(topics)
        return [
            connection_id
            for connection_id, joined in self._memberships.items()
            if joined & wanted
        ]

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def publish(self, topic: Topic, event: Event) -> int:
        return await self.fan_out([topic], event)

    async def fan_out(self, topics: Iterable[Topic], event: Event) -> int:
        """
        Send ``event`` to every connection subscribed to any of ``topics``.

        Each connection gets the event at most once even when it joined
        several of the target topics. Returns the number of successful sends.
        """
        message = event.message()
        delivered = 0
        dead = []

        # snapshot: disconnects may mutate the registry while we await sends
        for connection_id in self.subscribers(topics):
            websocket = self._connections.get(connection_id)
            if websocket is None:
                continue
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "Dropping realtime connection %s after failed send: %s",
                    connection_id,
                    exc,
                )
                dead.append(connection_id)

        for connection_id in dead:
            self.disconnect(connection_id)

        return delivered
