from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Any, Dict, Sequence
import asyncio
import logging

from freetime.core.auth import normalize_group_code
from freetime.core.errors import InvalidGroupCode
from freetime.services.block_service import get_blocks
from freetime.services.free_time_service import calculate_common_free_slots
from freetime.services.group_service import get_group_members
from freetime.services.notification_service import subscribe_to_blocks, subscribe_to_members

logger = logging.getLogger(__name__)

router = APIRouter()

def _blocks_message(blocks: Sequence[Any]) -> Dict[str, Any]:
    return {
        "type": "blocks",
        "blocks": [b.model_dump(mode="json") for b in blocks],
        "freeSlots": [s.model_dump(mode="json") for s in calculate_common_free_slots(blocks)]
    }

def _members_message(members: Sequence[Any]) -> Dict[str, Any]:
    return {
        "type": "members",
        "members": [m.model_dump(mode="json") for m in members]
    }

async def watch_disconnect(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """
    Drain incoming frames, text or binary, and queue a stop marker once the client leaves.
    """
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except Exception as e:
        logger.warning(f"Stream receive failed: {e}")
    finally:
        queue.put_nowait(None)

@router.websocket("/{group_code}/stream")
async def stream_group(websocket: WebSocket, group_code: str):
    """
    Push full block and member snapshots for a group until the client leaves.
    """
    try:
        group_code = normalize_group_code(group_code)
    except InvalidGroupCode:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()

    dispose_blocks = subscribe_to_blocks(group_code, lambda blocks: queue.put_nowait(_blocks_message(blocks)))
    dispose_members = subscribe_to_members(group_code, lambda members: queue.put_nowait(_members_message(members)))
    watcher = asyncio.create_task(watch_disconnect(websocket, queue))
    try:
        # Initial state, then whatever the subscriptions deliver
        queue.put_nowait(_blocks_message(await get_blocks(group_code)))
        queue.put_nowait(_members_message(await get_group_members(group_code)))
        while True:
            message = await queue.get()
            if message is None:
                break
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.debug(f"Client left group {group_code} stream mid-send")
    finally:
        dispose_blocks()
        dispose_members()
        watcher.cancel()
        logger.info(f"Stream closed for group {group_code}")
