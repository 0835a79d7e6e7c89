"""Progress event bridge.

A single shared inbound channel for installer progress events. Producers
(the REST endpoint, an embedded installer, tests) publish into it; exactly
one consumer, the coordinator's listener, reads from it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .models import ProgressEvent

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

logger = logging.getLogger(__name__)


class BridgeError(Exception):
    """Base exception for event bridge errors."""

    pass


class BridgeClosedError(BridgeError):
    """Exception raised when publishing to a closed bridge."""

    pass


_CLOSED = object()


class ProgressEventBridge:
    """Single-consumer queue of :class:`ProgressEvent`."""

    def __init__(self, max_size: int = 0) -> None:
        """
        Initialize the bridge.

        Args:
            max_size: Maximum queued events, 0 for unbounded
        """
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max_size)
        self._closed = False
        self._subscribed = False
        self._published = 0

    @property
    def closed(self) -> bool:
        """Whether the bridge has been closed."""
        return self._closed

    @property
    def subscribed(self) -> bool:
        """Whether a consumer has claimed the bridge."""
        return self._subscribed

    @property
    def pending(self) -> int:
        """Number of events waiting to be consumed."""
        return self._queue.qsize()

    @property
    def published(self) -> int:
        """Total number of events accepted since creation."""
        return self._published

    def publish(self, event: ProgressEvent | Mapping[str, Any]) -> ProgressEvent:
        """
        Queue an event for the consumer.

        Args:
            event: Event model or raw event payload

        Returns:
            The validated event

        Raises:
            BridgeClosedError: If the bridge is closed
            asyncio.QueueFull: If a bounded bridge is full
            pydantic.ValidationError: If the payload is malformed
        """
        if self._closed:
            raise BridgeClosedError("Event bridge is closed")

        if not isinstance(event, ProgressEvent):
            event = ProgressEvent.model_validate(event)

        self._queue.put_nowait(event)
        self._published += 1
        return event

    async def events(self) -> AsyncIterator[ProgressEvent]:
        """
        Consume events until the bridge is closed.

        Only one consumer may ever subscribe; a second listener would
        apply every event twice.

        Raises:
            BridgeError: If the bridge already has a consumer
        """
        if self._subscribed:
            raise BridgeError("Event bridge already has a consumer")
        self._subscribed = True
        logger.debug("Event bridge consumer subscribed")

        while not (self._closed and self._queue.empty()):
            item = await self._queue.get()
            if item is _CLOSED:
                break
            yield item
        logger.debug("Event bridge drained and closed")

    def close(self) -> None:
        """Stop accepting events; the consumer finishes after draining."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The consumer is not blocked on a full queue and stops once drained
            pass
        logger.debug("Event bridge closed")
