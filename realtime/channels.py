"""
Real-time channel routing.

Every live socket is wrapped in a ``Connection`` that owns an unbounded outbox.
The ``ChannelRouter`` only ever enqueues, so a slow client never stalls the
request that produced an event. Delivery is best-effort: no acknowledgement,
no replay for late joiners, no ordering across channels. Order is preserved
per connection.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
from logging_config import get_logger

logger = get_logger("realtime")

SendFn = Callable[[dict], Awaitable[None]]


class Connection:
    """One live client socket and its pending outbound messages."""

    def __init__(self, connection_id: str, send: SendFn, user_id: Optional[str] = None):
        self.id = connection_id
        self.user_id = user_id  # Authenticated identity, when the socket presented a token
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self._send = send

    def enqueue(self, message: dict) -> None:
        if self.closed:
            return
        self.outbox.put_nowait(message)

    async def pump(self) -> None:
        """Drain the outbox into the socket until the socket goes away."""
        while True:
            message = await self.outbox.get()
            try:
                await self._send(message)
            except Exception as e:
                # Client is gone; drop the backlog and refuse anything queued later
                self.closed = True
                dropped = self.outbox.qsize()
                while not self.outbox.empty():
                    self.outbox.get_nowait()
                logger.debug(f"Send to connection {self.id} failed, dropped {dropped + 1} message(s): {e}")
                return


class ConnectionRegistry:
    """Live connections and the channels each one has joined."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._channels: Dict[str, Set[str]] = {}

    def add(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def remove(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        for channel in list(self._channels):
            members = self._channels[channel]
            members.discard(connection_id)
            if not members:
                del self._channels[channel]

    def join(self, connection_id: str, channel: str) -> bool:
        if connection_id not in self._connections:
            return False
        self._channels.setdefault(channel, set()).add(connection_id)
        return True

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def members(self, channel: str) -> List[Connection]:
        ids = self._channels.get(channel, ())
        return [self._connections[cid] for cid in ids if cid in self._connections]

    def channels_of(self, connection_id: str) -> Set[str]:
        return {name for name, ids in self._channels.items() if connection_id in ids}

    def all(self) -> List[Connection]:
        return list(self._connections.values())

    def clear(self) -> None:
        self._connections.clear()
        self._channels.clear()

    def __len__(self) -> int:
        return len(self._connections)


class ChannelRouter:
    """Broadcast and per-channel delivery on top of a ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def connect(self, connection: Connection) -> None:
        self.registry.add(connection)
        logger.info(f"Client connected: {connection.id}")

    def disconnect(self, connection_id: str) -> None:
        self.registry.remove(connection_id)
        logger.info(f"Client disconnected: {connection_id}")

    def join(self, connection_id: str, channel: str) -> bool:
        """Add a connection to a channel. Joining twice is a no-op."""
        joined = self.registry.join(connection_id, channel)
        if joined:
            logger.info(f"Connection joined channel", extra={"data": {"connection_id": connection_id, "channel": channel}})
        return joined

    def broadcast(self, event: str, payload: Any) -> int:
        """Queue an event for every live connection. Returns the fan-out size."""
        return self._deliver(self.registry.all(), event, payload)

    def send_to_channel(self, channel: str, event: str, payload: Any) -> int:
        """Queue an event only for the members of one channel."""
        return self._deliver(self.registry.members(channel), event, payload)

    def _deliver(self, connections: List[Connection], event: str, payload: Any) -> int:
        message = {"event": event, "data": payload}
        connections = [c for c in connections if not c.closed]
        for connection in connections:
            connection.enqueue(message)
        logger.debug(f"Queued '{event}' for {len(connections)} connection(s)")
        return len(connections)

    def close(self) -> None:
        self.registry.clear()
