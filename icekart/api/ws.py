"""WebSocket endpoint shared by trigger sources, the operator panel and displays.

Each connection gets its own subscriber queue and a sender task that is the
only writer to the socket. Messages from one connection are applied in the
order they arrive; rejections go back to that connection only.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from icekart.engine import RaceEngine
from icekart.race.errors import MalformedMessage, RegistrationError
from icekart.realtime.messages import ErrorMessage, parse_inbound
from icekart.realtime.publisher import offer

router = APIRouter()


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


def _report_sender_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(f"[WS] Sender stopped: {error!r}")


def start_sender(websocket: WebSocket, queue: asyncio.Queue) -> asyncio.Task:
    """Start the task that drains ``queue`` into ``websocket``."""
    task = asyncio.create_task(_pump(websocket, queue))
    task.add_done_callback(_report_sender_exit)
    return task


async def _receive_frame(websocket: WebSocket) -> str | bytes:
    """Next text or binary frame from the client.

    Raises:
        WebSocketDisconnect: When the client goes away
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    text = message.get("text")
    if text is not None:
        return text
    return message.get("bytes") or b""


@router.websocket("/ws")
async def race_socket(websocket: WebSocket) -> None:
    engine: RaceEngine = websocket.app.state.engine
    await websocket.accept()
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    logger.info(f"[WS] Client connected: {client}")

    queue = engine.publisher.subscribe()
    offer(queue, engine.snapshot().to_wire())
    sender = start_sender(websocket, queue)

    try:
        while True:
            raw = await _receive_frame(websocket)
            try:
                engine.dispatch(parse_inbound(raw))
            except (MalformedMessage, RegistrationError) as e:
                logger.warning(f"[WS] Rejected message from {client}: {e}")
                offer(queue, ErrorMessage(detail=str(e)).to_wire())
            except Exception as e:
                logger.exception(f"[WS] Failed to handle message from {client}: {e}")
    except WebSocketDisconnect:
        logger.info(f"[WS] Client disconnected: {client}")
    finally:
        engine.publisher.unsubscribe(queue)
        sender.cancel()
