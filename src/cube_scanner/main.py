"""
CubeScanner Main Application
============================

FastAPI host for the scanning pipeline.

Frames arrive either by `POST /frames` or from an optional frame stream
(`stream.url`). Both feed a drop-oldest FrameBuffer. A single scan task
takes frames in order, decodes them to BGRA, and runs the pipeline in a
worker thread, awaiting each frame before taking the next.

The event loop owns the cube state: the CommitChannel is bound to it,
so commits produced in the worker thread are applied on the loop.

Endpoints:
    GET  /          - Service information
    GET  /health    - Liveness probe
    GET  /ready     - Readiness probe (scan task running?)
    GET  /metrics   - Pipeline, buffer and stream counters
    GET  /cube      - Current cube snapshot
    POST /frames    - Submit one encoded frame
    WS   /ws/cube   - Cube snapshot pushed on every change
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from cube_scanner.config import settings
from cube_scanner.cube import CommitChannel, CubeFaceSet
from cube_scanner.models.input import FrameMessage
from cube_scanner.pipeline import ScanPipeline
from cube_scanner.stream import (
    Frame,
    FrameBuffer,
    FrameConsumer,
    ImageDecodeError,
    decode_frame_bgra,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

_frame_buffer: Optional[FrameBuffer] = None
_frame_consumer: Optional[FrameConsumer] = None
_consumer_task: Optional[asyncio.Task] = None

_cube: Optional[CubeFaceSet] = None
_channel: Optional[CommitChannel] = None
_pipeline: Optional[ScanPipeline] = None
_scan_task: Optional[asyncio.Task] = None

_last_frame_id: int = -1
_startup_time: float = 0.0
_is_ready: bool = False

_decode_error_count: int = 0
_pipeline_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_cube() -> Optional[CubeFaceSet]:
    return _cube

def get_pipeline() -> Optional[ScanPipeline]:
    return _pipeline

def get_frame_buffer() -> Optional[FrameBuffer]:
    return _frame_buffer

def is_ready() -> bool:
    return _is_ready


# =============================================================================
# Scan Loop
# =============================================================================

async def scan_frames() -> None:
    """Take frames from the buffer and scan them one at a time."""
    global _last_frame_id, _is_ready
    global _decode_error_count, _pipeline_error_count

    if _frame_buffer is None or _pipeline is None:
        logger.error("Scan pipeline not initialized")
        return

    logger.info("Scan loop started")
    _is_ready = True

    while not _shutdown_flag:
        try:
            frame = await _frame_buffer.get(timeout=1.0)
            if frame is None:
                continue

            _last_frame_id = frame.frame_id

            try:
                buffer = decode_frame_bgra(frame)
            except ImageDecodeError as e:
                _decode_error_count += 1
                logger.error(f"Decode error (frame={frame.frame_id}): {e}")
                continue

            outcome = await asyncio.to_thread(_pipeline.process, buffer)
            logger.debug(f"Frame {frame.frame_id}: {outcome.value}")

        except asyncio.CancelledError:
            logger.info("Scan loop cancelled")
            break
        except Exception as e:
            _pipeline_error_count += 1
            logger.exception(f"Pipeline error: {e}")
            await asyncio.sleep(0.1)

    _is_ready = False
    logger.info("Scan loop stopped")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _frame_buffer, _frame_consumer, _consumer_task
    global _cube, _channel, _pipeline, _scan_task
    global _startup_time, _shutdown_flag

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.scanner.name} {settings.scanner.version}")

    _frame_buffer = FrameBuffer(maxsize=settings.stream.max_queue_size)

    # The loop thread owns the cube state
    _cube = CubeFaceSet()
    _cube.bind_owner()
    _channel = CommitChannel(_cube, loop=asyncio.get_running_loop())
    _pipeline = ScanPipeline.from_settings(settings, _cube, _channel)

    if settings.stream.url:
        _frame_consumer = FrameConsumer(
            url=settings.stream.url,
            buffer=_frame_buffer,
            reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
            max_reconnect_attempts=settings.stream.max_reconnect_attempts,
        )
        _consumer_task = asyncio.create_task(_frame_consumer.run(), name="frame_consumer")
    else:
        logger.info("No stream URL configured, accepting frames via POST /frames only")

    _scan_task = asyncio.create_task(scan_frames(), name="frame_scanning")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    # The scan loop sees the flag within one get() timeout and finishes
    # its in-flight frame first
    if _scan_task:
        try:
            await asyncio.wait_for(_scan_task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Scan loop did not stop in time, cancelled")

    if _frame_consumer:
        await _frame_consumer.stop()

    if _consumer_task:
        try:
            await asyncio.wait_for(_consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            _consumer_task.cancel()
            try:
                await _consumer_task
            except asyncio.CancelledError:
                pass

    _channel.bind(None)
    applied = _channel.drain()
    if applied:
        logger.info(f"Applied {applied} commit(s) queued during shutdown")
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="CubeScanner",
    description="Sticker color detection and stabilization for cube scanning",
    version=settings.scanner.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "CubeScanner",
        "name": settings.scanner.name,
        "version": settings.scanner.version,
        "status": "running",
        "history_length": settings.stabilizer.history_length,
        "quorum_policy": settings.stabilizer.quorum_policy,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always 200 while the process runs."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """Readiness probe. 503 until the scan loop is running."""
    if _is_ready and _pipeline is not None:
        return JSONResponse({
            "status": "ready",
            "stream_connected": _frame_consumer.connected if _frame_consumer else False,
            "last_frame_id": _last_frame_id,
        })
    return JSONResponse({"status": "not_ready"}, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    payload = {
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "decode_errors": _decode_error_count,
        "pipeline_errors": _pipeline_error_count,
    }
    if _frame_buffer:
        payload["buffer"] = _frame_buffer.metrics()
    if _frame_consumer:
        payload["stream"] = {
            "connected": _frame_consumer.connected,
            **_frame_consumer.metrics.to_dict(),
        }
    if _pipeline:
        payload["pipeline"] = _pipeline.get_metrics()
    if _channel:
        payload["commits"] = _channel.get_metrics()
    if _cube:
        payload["cube_revision"] = _cube.revision
        payload["cube_subscribers"] = _cube.subscriber_count
    return JSONResponse(payload)


@app.get("/cube")
async def cube() -> JSONResponse:
    """Current cube state."""
    if _cube is None:
        return JSONResponse({"error": "Cube state not initialized"}, status_code=503)
    return JSONResponse(_cube.snapshot().model_dump(mode="json"))


@app.post("/frames", status_code=202)
async def submit_frame(message: FrameMessage) -> JSONResponse:
    """Queue one encoded frame for scanning."""
    if _frame_buffer is None:
        return JSONResponse({"error": "Frame buffer not initialized"}, status_code=503)

    accepted = _frame_buffer.put(Frame(
        frame_id=message.frame_id,
        timestamp=message.timestamp,
        image_b64=message.image,
    ))
    return JSONResponse(
        {"frame_id": message.frame_id, "queued": True, "dropped_oldest": not accepted},
        status_code=202,
    )


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/cube")
async def cube_stream(websocket: WebSocket) -> None:
    """Push the cube snapshot on connect and after every change."""
    await websocket.accept()
    logger.info("Client connected to /ws/cube")

    if _cube is None:
        await websocket.close(code=1013)
        return

    changed = asyncio.Event()
    unsubscribe = _cube.subscribe(lambda index, reading: changed.set())
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        await websocket.send_json(_cube.snapshot().model_dump(mode="json"))
        while not _shutdown_flag:
            change = asyncio.create_task(changed.wait())
            done, _ = await asyncio.wait(
                {change, disconnected},
                timeout=1.0,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if change not in done:
                change.cancel()
            if disconnected in done:
                break
            if change in done:
                changed.clear()
                await websocket.send_json(_cube.snapshot().model_dump(mode="json"))
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        unsubscribe()
        logger.info("Client disconnected from /ws/cube")


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Read and discard client messages until the client goes away."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))
    uvicorn.run(
        "cube_scanner.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
