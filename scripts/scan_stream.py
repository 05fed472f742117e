#!/usr/bin/env python3
"""
Headless Stream Scan Script
===========================

Standalone script that scans a live frame stream without the HTTP host.

This script:
    1. Connects to a running frame stream
    2. Runs every frame through the scan pipeline
    3. Applies commits on the main loop and logs each new face
    4. Stops when the cube is complete or the duration runs out

Prerequisites:
    - A frame stream must be running at the given URL
    - Install the package: pip install -e .

Usage:
    python scripts/scan_stream.py --duration 120
    python scripts/scan_stream.py --url ws://localhost:8000/ws/stream
"""

import argparse
import asyncio
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cube_scanner.config import settings
from cube_scanner.cube import CommitChannel, CubeFaceSet
from cube_scanner.models.colors import FACE_NAMES
from cube_scanner.pipeline import ScanPipeline
from cube_scanner.stream import (
    FrameBuffer,
    FrameConsumer,
    ImageDecodeError,
    decode_frame_bgra,
)


logger = logging.getLogger(__name__)


async def run_scan(url: str, duration: int, report_interval: int) -> dict:
    """
    Scan the stream until the cube is complete or time runs out.

    Args:
        url: WebSocket URL of the frame stream
        duration: Maximum run time in seconds
        report_interval: Seconds between progress reports

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info(f"Stream URL: {url}")
    logger.info(f"Duration: {duration} seconds")
    logger.info(f"History length: {settings.stabilizer.history_length}")
    logger.info(f"Quorum policy: {settings.stabilizer.quorum_policy}")
    logger.info("=" * 60)

    cube = CubeFaceSet()
    # Unbound channel: this loop drains it after every frame
    channel = CommitChannel(cube)
    pipeline = ScanPipeline.from_settings(settings, cube, channel)

    cube.subscribe(
        lambda index, reading: logger.info(f"Face {FACE_NAMES[index]} scanned: {reading!r}")
    )

    buffer = FrameBuffer(maxsize=settings.stream.max_queue_size)
    consumer = FrameConsumer(
        url=url,
        buffer=buffer,
        reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
        max_reconnect_attempts=settings.stream.max_reconnect_attempts,
    )
    consumer_task = asyncio.create_task(consumer.run())

    start_time = time.time()
    last_report_time = start_time
    decode_errors = 0

    try:
        while time.time() - start_time < duration and not cube.is_complete:
            frame = await buffer.get(timeout=0.5)
            if frame is not None:
                try:
                    pixel_buffer = decode_frame_bgra(frame)
                except ImageDecodeError as e:
                    decode_errors += 1
                    logger.warning(f"Decode error (frame={frame.frame_id}): {e}")
                else:
                    await asyncio.to_thread(pipeline.process, pixel_buffer)
                    channel.drain()

            if time.time() - last_report_time >= report_interval:
                metrics = pipeline.get_metrics()
                logger.info("-" * 40)
                logger.info(f"  Connected: {consumer.connected}")
                logger.info(f"  Frames processed: {metrics['frames_processed']}")
                logger.info(f"  Outcomes: {metrics['outcomes']}")
                logger.info(f"  Faces scanned: {sum(f.is_complete for f in cube.faces)}/6")
                last_report_time = time.time()

    except KeyboardInterrupt:
        logger.info("Scan interrupted by user")
    finally:
        await consumer.stop()
        try:
            await asyncio.wait_for(consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            consumer_task.cancel()
            try:
                await consumer_task
            except asyncio.CancelledError:
                pass

    total_time = time.time() - start_time
    metrics = pipeline.get_metrics()

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames received: {consumer.metrics.frames_received}")
    logger.info(f"Frames processed: {metrics['frames_processed']}")
    logger.info(f"Decode errors: {decode_errors}")
    logger.info(f"Commits: {channel.get_metrics()}")
    for index, face in enumerate(cube.faces):
        logger.info(f"  {FACE_NAMES[index]}: {face!r}")
    logger.info("=" * 60)

    return {
        "duration": total_time,
        "frames_processed": metrics["frames_processed"],
        "faces_scanned": sum(f.is_complete for f in cube.faces),
        "complete": cube.is_complete,
    }


def main():
    parser = argparse.ArgumentParser(description="Scan a cube from a live frame stream")
    parser.add_argument(
        "--url",
        type=str,
        default=settings.stream.url or "ws://localhost:8000/ws/stream",
        help="WebSocket URL of the frame stream",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=120,
        help="Maximum run time in seconds (default: 120)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=10,
        help="Seconds between progress reports (default: 10)",
    )

    args = parser.parse_args()

    result = asyncio.run(run_scan(
        url=args.url,
        duration=args.duration,
        report_interval=args.report_interval,
    ))

    sys.exit(0 if result["complete"] else 1)


if __name__ == "__main__":
    main()
