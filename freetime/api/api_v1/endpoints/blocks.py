from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Dict, Optional
from freetime.core.auth import get_current_user_id, get_group_code
from freetime.core.errors import InvalidInterval, MutationStatus
from freetime.schemas.schedule import BusyBlock, BusyBlockCreate, BusyBlockInput, BusyBlockUpdate
from freetime.services.block_service import (
    add_block, update_block, remove_block, get_blocks, get_blocks_by_user
)
from freetime.services.group_service import get_group_members

router = APIRouter()

def _raise_for_status(result: MutationStatus) -> None:
    if result == MutationStatus.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Block not found"
        )
    if result == MutationStatus.NOT_AUTHORIZED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own blocks"
        )
    if result == MutationStatus.UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage unavailable, try again"
        )

@router.get("/{group_code}/blocks", response_model=List[BusyBlock])
async def list_blocks(
    group_code: str = Depends(get_group_code),
    user_id: Optional[str] = Query(None, alias="userId", description="Only this member's blocks")
):
    """
    Get the group's busy blocks in grid order
    """
    if user_id:
        return await get_blocks_by_user(group_code, user_id)
    return await get_blocks(group_code)

@router.post("/{group_code}/blocks", response_model=BusyBlock, status_code=status.HTTP_201_CREATED)
async def create_block(
    block_in: BusyBlockCreate,
    group_code: str = Depends(get_group_code),
    user_id: str = Depends(get_current_user_id)
):
    """
    Mark a busy interval for the current member
    """
    # Snapshot the member's current name onto the block
    members = await get_group_members(group_code)
    member = next((m for m in members if m.userId == user_id), None)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Join the group before adding blocks"
        )
    
    try:
        block = await add_block(BusyBlockInput(
            **block_in.model_dump(),
            userId=user_id,
            userName=member.userName,
            groupCode=group_code
        ))
    except InvalidInterval as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    
    if not block:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to add block"
        )
    return block

@router.patch("/{group_code}/blocks/{block_id}", response_model=Dict[str, str])
async def patch_block(
    block_id: str,
    updates: BusyBlockUpdate,
    group_code: str = Depends(get_group_code),
    user_id: str = Depends(get_current_user_id)
):
    """
    Update some fields of one of the current member's blocks
    """
    try:
        result = await update_block(group_code, block_id, user_id, updates)
    except InvalidInterval as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    
    _raise_for_status(result)
    return {"message": "Block updated successfully"}

@router.delete("/{group_code}/blocks/{block_id}", response_model=Dict[str, str])
async def delete_block(
    block_id: str,
    group_code: str = Depends(get_group_code),
    user_id: str = Depends(get_current_user_id)
):
    """
    Delete one of the current member's blocks
    """
    result = await remove_block(group_code, block_id, user_id)
    _raise_for_status(result)
    return {"message": "Block removed successfully"}
