"""
WebSocket endpoint for live request updates.

Frames are JSON objects ``{"event": ..., "data": ...}``. After connecting a
client joins topics:

    {"event": "join-admin-room"}
    {"event": "join-student-room", "data": {"residence": "Malema", "block": "2"}}

and then receives ``new-request`` / ``request-updated`` frames for them.
"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.broadcaster import Broadcaster, Topic

logger = logging.getLogger(__name__)

router = APIRouter()


def _block_topic(data) -> Topic | None:
    if not isinstance(data, dict):
        return None
    residence, block = data.get("residence"), data.get("block")
    if not residence or not block:
        return None
    return Topic.for_block(str(residence), str(block))


def _topic_from_frame(event: str, data) -> Topic | None:
    if event == "join-admin-room":
        return Topic.admin()
    if event == "join-student-room":
        return _block_topic(data)
    if event == "leave-room":
        if isinstance(data, dict) and data.get("topic") == "admin":
            return Topic.admin()
        return _block_topic(data)
    return None


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})


@router.websocket("/ws")
async def realtime(websocket: WebSocket):
    broadcaster: Broadcaster = websocket.app.state.broadcaster

    await websocket.accept()
    connection_id = broadcaster.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            text = message.get("text")
            if text is None:
                await _send_error(websocket, "Frames must be JSON text, not binary.")
                continue
            try:
                frame = json.loads(text)
            except ValueError:
                await _send_error(websocket, "Frames must be JSON objects.")
                continue

            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await _send_error(websocket, "Frames must carry an event name.")
                continue

            event = frame["event"]
            topic = _topic_from_frame(event, frame.get("data"))
            if topic is None:
                await _send_error(websocket, f"Unsupported or incomplete event: {event}")
                continue

            if event == "leave-room":
                broadcaster.leave(connection_id, topic)
                await websocket.send_json({"event": "left", "data": {"topic": str(topic)}})
            else:
                broadcaster.join(connection_id, topic)
                await websocket.send_json({"event": "joined", "data": {"topic": str(topic)}})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(connection_id)
