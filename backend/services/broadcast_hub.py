"""
Broadcast Hub

Process-wide publish/subscribe registry over live socket connections.

- Every registered connection receives every published event; topic
  filtering happens client-side on the event's chatId.
- Delivery is best-effort. publish() is synchronous and never suspends: an
  event is either queued on an open connection's outbox or skipped.
- Each connection owns one bounded outbox drained by one writer, so events
  from a single publisher reach every subscriber in publish order. A full
  outbox drops new events for that subscriber only.
- No replay: a connection registered after publish() returns never sees
  that event.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from backend.config import OUTBOX_SIZE
from backend.models.event_model import CONNECTED, DOCUMENT_UPDATE, DocumentUpdateEvent

logger = logging.getLogger("broadcast_hub")

SubscriptionHandle = str


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    """A live subscriber. Holds no domain data, only its transport and outbox."""

    def __init__(self, websocket: Any = None, connection_id: Optional[str] = None, outbox_size: int = OUTBOX_SIZE):
        self.id: str = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.state = ConnectionState.CONNECTING
        # None is the writer's stop sentinel
        self.outbox: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=outbox_size)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, state={self.state.value})"

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.OPEN

    def open(self) -> None:
        if self.state is ConnectionState.CONNECTING:
            self.state = ConnectionState.OPEN

    def close(self) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        if self.outbox.full():
            # drop the oldest event to make room for the sentinel
            self.outbox.get_nowait()
        self.outbox.put_nowait(None)

    def deliver(self, event: Dict[str, Any]) -> bool:
        """Queue an event for the writer. Returns False when skipped."""
        if not self.is_ready:
            return False
        try:
            self.outbox.put_nowait(json.dumps(jsonable_encoder(event)))
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for {self.id}, dropping {event.get('type')} event")
            return False
        return True

    async def pump(self, on_failure: Optional[Callable[[str, BaseException], None]] = None) -> None:
        """
        Writer loop: drain the outbox onto the socket until closed.

        A failed write closes the connection and reports it through
        `on_failure(connection_id, exc)` so the hub can drop it right away.
        """
        while True:
            payload = await self.outbox.get()
            if payload is None:
                return
            try:
                await self.websocket.send_text(payload)
            except Exception as e:
                # transport errors stay inside the hub
                logger.warning(f"Delivery to {self.id} failed, closing: {e}")
                self.close()
                if on_failure is not None:
                    on_failure(self.id, e)
                return


class BroadcastHub:
    def __init__(self):
        self._connections: Dict[SubscriptionHandle, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, handle: SubscriptionHandle) -> bool:
        return handle in self._connections

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def register(self, connection: Connection) -> SubscriptionHandle:
        self._connections[connection.id] = connection
        logger.info(f"Connection {connection.id} registered ({len(self)} live)")
        return connection.id

    def unregister(self, handle: SubscriptionHandle) -> None:
        connection = self._connections.pop(handle, None)
        if connection is None:
            return
        connection.close()
        logger.info(f"Connection {handle} unregistered ({len(self)} live)")

    def publish(self, event: Dict[str, Any], exclude: Optional[Connection] = None) -> int:
        """
        Deliver `event` to every ready connection except `exclude`.

        Fire-and-forget: never raises, never waits. The return value is the
        number of connections the event was queued for and is only meant
        for logging.
        """
        delivered = 0
        # iterate a snapshot; handlers may unregister while we loop
        for connection in list(self._connections.values()):
            if exclude is not None and connection is exclude:
                continue
            try:
                if connection.deliver(event):
                    delivered += 1
            except Exception as e:
                logger.warning(f"Skipping {connection.id}: {e}")
        logger.debug(f"Published {event.get('type')} to {delivered}/{len(self)} connections")
        return delivered


# ---------------- Connection lifecycle handlers ----------------
def on_connect(hub: BroadcastHub, connection: Connection) -> SubscriptionHandle:
    handle = hub.register(connection)
    connection.open()
    connection.deliver({"type": CONNECTED, "connectionId": connection.id})
    return handle


def on_message(hub: BroadcastHub, connection: Connection, raw: str) -> bool:
    """
    Handle one inbound text frame. Only document_update events are
    recognised; they are relayed verbatim to every other connection.
    Returns True when the payload was relayed.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-JSON payload from {connection.id}")
        return False

    if not isinstance(payload, dict):
        logger.warning(f"Ignoring non-object payload from {connection.id}")
        return False

    logger.debug(f"Socket message from {connection.id}: {payload.get('type')}")
    if payload.get("type") != DOCUMENT_UPDATE:
        logger.warning(f"Ignoring unsupported event type {payload.get('type')!r}")
        return False

    try:
        DocumentUpdateEvent.model_validate(payload)
    except ValidationError:
        logger.warning(f"Ignoring document_update without chatId from {connection.id}")
        return False

    hub.publish(payload, exclude=connection)
    return True


def on_disconnect(hub: BroadcastHub, handle: SubscriptionHandle) -> None:
    hub.unregister(handle)


def on_error(hub: BroadcastHub, handle: SubscriptionHandle, exc: BaseException) -> None:
    logger.error(f"Socket error on {handle}: {exc}")
    hub.unregister(handle)


# Process-wide hub
hub = BroadcastHub()


def get_hub() -> BroadcastHub:
    return hub
