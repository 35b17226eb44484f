"""Wire protocol: decouples agent execution from whoever is listening.

Events flow from the runtime to subscribers. The CLI renders them, and
``run_stream`` uses a private wire as the channel that carries the final
answer to the caller.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class EventType(enum.Enum):
    TURN_BEGIN = "turn_begin"
    TURN_END = "turn_end"
    STEP_BEGIN = "step_begin"
    TEXT = "text"
    THINKING = "thinking"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    ERROR = "error"
    STATUS = "status"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire:
    """Async message bus: runtime -> subscribers.

    Single-producer, multi-consumer broadcast.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[WireEvent | None]] = []
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` has been called.
        """
        if self._closed:
            return
        for q in self._subscribers:
            q.put_nowait(event)

    def send_text(self, text: str) -> None:
        self.send(WireEvent(type=EventType.TEXT, data={"text": text}))

    def send_status(self, message: str) -> None:
        self.send(WireEvent(type=EventType.STATUS, data={"message": message}))

    def send_error(self, error: str) -> None:
        self.send(WireEvent(type=EventType.ERROR, data={"error": error}))

    def send_tool_call(self, name: str, params: str) -> None:
        self.send(WireEvent(type=EventType.TOOL_CALL, data={"name": name, "params": params}))

    def send_tool_result(self, name: str, success: bool, content: str, elapsed_ms: int) -> None:
        self.send(
            WireEvent(
                type=EventType.TOOL_RESULT,
                data={
                    "name": name,
                    "success": success,
                    "content": content,
                    "elapsed_ms": elapsed_ms,
                },
            )
        )

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        if q in self._subscribers:
            self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        if self._closed:
            return
        self._closed = True
        for q in self._subscribers:
            q.put_nowait(None)


class TextStream:
    """Async iterator over the TEXT events of one wire subscription.

    Iteration ends when the wire closes. If no event arrives within
    ``timeout_ms`` the stream raises :class:`TimeoutError`.

        async for chunk in agent.run_stream("你好"):
            print(chunk)
    """

    def __init__(self, wire: Wire, timeout_ms: int) -> None:
        self._wire = wire
        self._queue = wire.subscribe()
        self._timeout = timeout_ms / 1000

    def __aiter__(self) -> TextStream:
        return self

    async def __anext__(self) -> str:
        while True:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=self._timeout)
            except asyncio.TimeoutError:
                logger.warning("Stream timed out after %.1fs", self._timeout)
                self._wire.unsubscribe(self._queue)
                raise TimeoutError(f"no answer within {self._timeout:.1f}s") from None

            if event is None:
                self._wire.unsubscribe(self._queue)
                raise StopAsyncIteration
            if event.type is EventType.TEXT:
                return event.data["text"]

    async def collect(self) -> str:
        """Concatenate every remaining chunk."""
        return "".join([chunk async for chunk in self])
