"""
Frame Consumer
===============

WebSocket client that subscribes to a stream of encoded frames.

This module provides the FrameConsumer class which:
    - Connects to a frame stream endpoint
    - Parses messages against the FrameMessage schema
    - Warns on out-of-order frame ids
    - Reconnects with a fixed backoff
    - Pushes parsed frames into a FrameBuffer

Design Rules:
    - Does NOT decode image data
    - Logs validation warnings but continues processing
    - Exposes metrics for health monitoring
"""

import asyncio
import logging
from typing import Any, Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from cube_scanner.models.input import FrameMessage
from cube_scanner.stream.buffer import FrameBuffer
from cube_scanner.stream.frame import Frame


logger = logging.getLogger(__name__)


class FrameConsumerMetrics:
    """Metrics for FrameConsumer observability."""

    __slots__ = (
        "frames_received",
        "reconnect_count",
        "last_frame_id",
        "out_of_order",
        "parse_errors",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.reconnect_count: int = 0
        self.last_frame_id: int = -1
        self.out_of_order: int = 0
        self.parse_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "reconnect_count": self.reconnect_count,
            "last_frame_id": self.last_frame_id,
            "out_of_order": self.out_of_order,
            "parse_errors": self.parse_errors,
        }


class FrameConsumer:
    """
    WebSocket consumer for encoded frames.

    Attributes:
        url: WebSocket URL to connect to
        buffer: FrameBuffer to push frames into
        connected: Whether currently connected
        metrics: Operational metrics

    Example:
        consumer = FrameConsumer(url="ws://camera:9000/frames", buffer=buffer)
        task = asyncio.create_task(consumer.run())
        ...
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        buffer: FrameBuffer,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize frame consumer.

        Args:
            url: WebSocket URL of the frame stream
            buffer: FrameBuffer to push parsed frames into
            reconnect_backoff_ms: Backoff between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.buffer = buffer
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self._websocket: Optional[Any] = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.metrics = FrameConsumerMetrics()

    @property
    def connected(self) -> bool:
        return self._connected

    async def run(self) -> None:
        """
        Start consuming frames.

        Runs until stop() is called or the reconnect budget is spent.
        """
        self._running = True
        self._stop_event.clear()

        logger.info(f"FrameConsumer starting, connecting to {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                if not self._running:
                    break
                logger.error(f"Connection error: {e}")
                self._connected = False

            if not self._running:
                break

            if (
                self.max_reconnect_attempts > 0
                and self.metrics.reconnect_count >= self.max_reconnect_attempts
            ):
                logger.error(
                    f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                )
                break

            self.metrics.reconnect_count += 1
            backoff_sec = self.reconnect_backoff_ms / 1000.0
            logger.info(
                f"Reconnecting in {backoff_sec:.1f}s "
                f"(attempt {self.metrics.reconnect_count})"
            )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                break
            except asyncio.TimeoutError:
                pass

        self._running = False
        logger.info("FrameConsumer stopped")

    async def stop(self) -> None:
        """Signal the run loop to exit and close the connection."""
        logger.info("FrameConsumer stopping...")
        self._running = False
        self._stop_event.set()

        if self._websocket is not None:
            await self._websocket.close()

        self._connected = False

    async def _connect_and_consume(self) -> None:
        """Connect to WebSocket and consume messages until disconnect."""
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to frame stream: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break

                    frame = self.parse_message(message)
                    if frame is not None:
                        self.buffer.put(frame)
            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            finally:
                self._connected = False
                self._websocket = None

    def parse_message(self, raw: Any) -> Optional[Frame]:
        """
        Parse one raw stream message into a Frame.

        Out-of-order frame ids are counted and logged but not rejected.

        Returns:
            Frame, or None if the message does not match the schema
        """
        try:
            message = FrameMessage.model_validate_json(raw)
        except ValidationError as e:
            self.metrics.parse_errors += 1
            logger.error(f"Invalid frame message: {e.error_count()} error(s)")
            return None

        if message.frame_id <= self.metrics.last_frame_id:
            self.metrics.out_of_order += 1
            logger.warning(
                f"Frame ID went backwards: got {message.frame_id}, "
                f"last was {self.metrics.last_frame_id}"
            )

        self.metrics.frames_received += 1
        self.metrics.last_frame_id = message.frame_id

        return Frame(
            frame_id=message.frame_id,
            timestamp=message.timestamp,
            image_b64=message.image,
        )
