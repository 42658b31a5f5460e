from typing import Dict, Any, List, Optional
from datetime import date
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.errors import PyMongoError
from pydantic import ValidationError
import logging

from freetime.core.errors import MutationStatus, PersistenceUnavailable
from freetime.core.events import change_hub, BLOCKS_TOPIC
from freetime.db.mongodb import get_collection, BUSY_BLOCKS
from freetime.schemas.schedule import BusyBlock, BusyBlockInput, BusyBlockUpdate, DEFAULT_LABEL
from freetime.utils.intervals import ensure_valid_interval

logger = logging.getLogger(__name__)

GRID_ORDER = [("day", ASCENDING), ("startHour", ASCENDING), ("startMinute", ASCENDING)]

def _to_block(doc: Dict[str, Any]) -> BusyBlock:
    return BusyBlock(
        id=str(doc["_id"]),
        userId=doc["userId"],
        userName=doc["userName"],
        groupCode=doc["groupCode"],
        day=doc["day"],
        startHour=doc["startHour"],
        startMinute=doc["startMinute"],
        endHour=doc["endHour"],
        endMinute=doc["endMinute"],
        label=doc.get("label") or DEFAULT_LABEL,
        recurring=bool(doc.get("recurring", False)),
    )

def _block_filter(group_code: str, block_id: str) -> Optional[Dict[str, Any]]:
    try:
        return {"_id": ObjectId(block_id), "groupCode": group_code}
    except (InvalidId, TypeError):
        return None

async def add_block(block_in: BusyBlockInput) -> Optional[BusyBlock]:
    """
    Store a new busy block and notify the group.

    Raises InvalidInterval before anything is written if the block ends at or
    before its start. Returns None when the store is unavailable.
    """
    ensure_valid_interval(block_in.startHour, block_in.startMinute, block_in.endHour, block_in.endMinute)

    block_data = block_in.model_dump()
    block_data["label"] = (block_data.get("label") or "").strip() or DEFAULT_LABEL

    try:
        collection = get_collection(BUSY_BLOCKS)
        result = await collection.insert_one(block_data)
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error adding block for group {block_in.groupCode}: {e}")
        return None

    block_data["_id"] = result.inserted_id
    change_hub.publish(block_in.groupCode, BLOCKS_TOPIC)
    return _to_block(block_data)

async def update_block(
    group_code: str,
    block_id: str,
    user_id: str,
    updates: BusyBlockUpdate
) -> MutationStatus:
    """
    Apply the provided fields to a block owned by `user_id`.

    Fields left out or sent as null keep their stored value.
    """
    query = _block_filter(group_code, block_id)
    if query is None:
        return MutationStatus.NOT_FOUND

    update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
    if "label" in update_data:
        update_data["label"] = (update_data["label"] or "").strip() or DEFAULT_LABEL

    try:
        collection = get_collection(BUSY_BLOCKS)
        existing = await collection.find_one(query)
        if not existing:
            return MutationStatus.NOT_FOUND
        if existing["userId"] != user_id:
            logger.warning(f"User {user_id} tried to update block {block_id} owned by {existing['userId']}")
            return MutationStatus.NOT_AUTHORIZED

        if not update_data:
            return MutationStatus.OK

        # Validate the interval the block would have after the update
        merged = {**existing, **update_data}
        ensure_valid_interval(merged["startHour"], merged["startMinute"], merged["endHour"], merged["endMinute"])

        # Owner is part of the filter so the write can only ever touch the caller's row
        result = await collection.update_one(
            {**query, "userId": user_id},
            {"$set": update_data}
        )
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error updating block {block_id} in group {group_code}: {e}")
        return MutationStatus.UNAVAILABLE

    if result.matched_count == 0:
        # Deleted between the read and the write
        return MutationStatus.NOT_FOUND

    change_hub.publish(group_code, BLOCKS_TOPIC)
    return MutationStatus.OK

async def remove_block(group_code: str, block_id: str, user_id: str) -> MutationStatus:
    """
    Delete a block owned by `user_id`.
    """
    query = _block_filter(group_code, block_id)
    if query is None:
        return MutationStatus.NOT_FOUND

    try:
        collection = get_collection(BUSY_BLOCKS)
        result = await collection.delete_one({**query, "userId": user_id})
        if result.deleted_count == 0:
            existing = await collection.find_one(query, {"userId": 1})
            if not existing:
                return MutationStatus.NOT_FOUND
            logger.warning(f"User {user_id} tried to delete block {block_id} owned by {existing['userId']}")
            return MutationStatus.NOT_AUTHORIZED
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error removing block {block_id} from group {group_code}: {e}")
        return MutationStatus.UNAVAILABLE

    change_hub.publish(group_code, BLOCKS_TOPIC)
    return MutationStatus.OK

async def _find_blocks(query: Dict[str, Any]) -> List[BusyBlock]:
    try:
        collection = get_collection(BUSY_BLOCKS)
        cursor = collection.find(query, sort=GRID_ORDER)
        docs = await cursor.to_list(length=None)
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error fetching blocks for {query}: {e}")
        return []

    blocks = []
    for doc in docs:
        try:
            blocks.append(_to_block(doc))
        except (KeyError, ValidationError) as e:
            logger.warning(f"Skipping malformed block {doc.get('_id')}: {e}")
    return blocks

async def get_blocks(group_code: str) -> List[BusyBlock]:
    """
    Get all blocks in a group ordered by day, start hour and start minute.

    Returns an empty list if the group has no blocks or the store is down.
    """
    return await _find_blocks({"groupCode": group_code})

async def get_blocks_for_week(group_code: str, week_start: Optional[date] = None) -> List[BusyBlock]:
    # Blocks are not tied to a calendar week; every week sees the same set
    return await get_blocks(group_code)

async def get_blocks_by_user(group_code: str, user_id: str) -> List[BusyBlock]:
    """
    Get one member's blocks in grid order.
    """
    return await _find_blocks({"groupCode": group_code, "userId": user_id})
