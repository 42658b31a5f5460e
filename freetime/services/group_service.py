from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
import logging

from freetime.core.errors import MutationStatus, PersistenceUnavailable
from freetime.core.events import change_hub, MEMBERS_TOPIC
from freetime.db.mongodb import get_collection, GROUPS, MEMBERS
from freetime.schemas.group import GroupData, GroupMember

logger = logging.getLogger(__name__)

JOIN_ORDER = [("joinedAt", ASCENDING), ("_id", ASCENDING)]

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _to_member(doc: Dict[str, Any]) -> GroupMember:
    return GroupMember(
        userId=doc["userId"],
        userName=doc["userName"],
        joinedAt=doc["joinedAt"],
    )

async def _fetch_members(code: str) -> List[GroupMember]:
    collection = get_collection(MEMBERS)
    cursor = collection.find({"groupCode": code}, sort=JOIN_ORDER)
    docs = await cursor.to_list(length=None)
    return [_to_member(doc) for doc in docs]

async def get_group(code: str) -> Optional[GroupData]:
    """
    Get a group and its roster, or None if the group does not exist.
    """
    try:
        group = await get_collection(GROUPS).find_one({"code": code})
        if not group:
            return None
        members = await _fetch_members(code)
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error getting group {code}: {e}")
        return None

    return GroupData(code=group["code"], members=members, createdAt=group["createdAt"])

async def get_group_members(code: str) -> List[GroupMember]:
    """
    Get a group's members in the order they joined.
    """
    try:
        return await _fetch_members(code)
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error fetching members for group {code}: {e}")
        return []

async def _add_member(code: str, user_id: str, user_name: str) -> bool:
    """
    Insert a membership row unless one already exists. Returns True if inserted.
    """
    result = await get_collection(MEMBERS).update_one(
        {"groupCode": code, "userId": user_id},
        {"$setOnInsert": {
            "userName": user_name,
            "joinedAt": _now()
        }},
        upsert=True
    )
    inserted = result.upserted_id is not None
    if inserted:
        logger.info(f"User {user_id} joined group {code}")
        change_hub.publish(code, MEMBERS_TOPIC)
    return inserted

async def create_group(code: str, user_id: str, user_name: str) -> Optional[GroupData]:
    """
    Create a new group with the caller as its first member.

    Returns None if the code is already taken; the caller should join instead.
    """
    try:
        groups = get_collection(GROUPS)
        if await groups.find_one({"code": code}):
            logger.info(f"Group {code} already exists")
            return None
        await groups.insert_one({"code": code, "createdAt": _now()})
        try:
            await _add_member(code, user_id, user_name)
        except (PyMongoError, PersistenceUnavailable):
            # Release the code so a retry is not rejected as taken
            await groups.delete_one({"code": code})
            raise
    except DuplicateKeyError:
        # Another client created the same code between the check and the insert
        logger.info(f"Group {code} already exists")
        return None
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error creating group {code}: {e}")
        return None

    logger.info(f"Created group {code}")
    return await get_group(code)

async def ensure_group_and_membership(code: str, user_id: str, user_name: str) -> bool:
    """
    Create the group if absent, then add the member if absent.

    Both steps are single upserts, so a creator and a joiner racing on the same
    code both end up in one group. Returns True if a new member was added.
    Raises PersistenceUnavailable or PyMongoError on store failure.
    """
    try:
        await get_collection(GROUPS).update_one(
            {"code": code},
            {"$setOnInsert": {"createdAt": _now()}},
            upsert=True
        )
    except DuplicateKeyError:
        # Lost the upsert race on the unique index; the group exists now
        pass

    try:
        return await _add_member(code, user_id, user_name)
    except DuplicateKeyError:
        return False

async def join_group(code: str, user_id: str, user_name: str) -> Optional[GroupData]:
    """
    Join a group, creating it first if nobody has used the code yet.

    Rejoining is a no-op; returns None only when the store is unavailable.
    """
    try:
        await ensure_group_and_membership(code, user_id, user_name)
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error joining group {code}: {e}")
        return None

    return await get_group(code)

async def update_member_name(code: str, user_id: str, user_name: str) -> MutationStatus:
    """
    Rename a member. Blocks keep the name they were created with.
    """
    try:
        result = await get_collection(MEMBERS).update_one(
            {"groupCode": code, "userId": user_id},
            {"$set": {"userName": user_name}}
        )
    except (PyMongoError, PersistenceUnavailable) as e:
        logger.error(f"Error updating member name in group {code}: {e}")
        return MutationStatus.UNAVAILABLE

    if result.matched_count == 0:
        return MutationStatus.NOT_FOUND

    change_hub.publish(code, MEMBERS_TOPIC)
    return MutationStatus.OK
