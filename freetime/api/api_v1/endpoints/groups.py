from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from freetime.core.auth import (
    get_current_user_id, get_group_code, generate_group_code,
    generate_user_id, normalize_group_code
)
from freetime.core.errors import InvalidGroupCode, MutationStatus
from freetime.schemas.group import GroupCreate, GroupData, GroupJoin, GroupMember, MemberRename
from freetime.services.group_service import (
    create_group, join_group, get_group, get_group_members, update_member_name
)

router = APIRouter()

CODE_ATTEMPTS = 5

@router.post("", response_model=GroupData, status_code=status.HTTP_201_CREATED)
async def create_new_group(group_in: GroupCreate):
    """
    Create a group with the caller as its first member.

    A random code is generated when none is given, retrying a few times
    if the generated code is already in use.
    """
    try:
        if group_in.code:
            codes = [normalize_group_code(group_in.code)]
        else:
            codes = [generate_group_code() for _ in range(CODE_ATTEMPTS)]
    except InvalidGroupCode as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    
    user_name = group_in.userName.strip()
    user_id = generate_user_id(user_name)
    for code in codes:
        group = await create_group(code, user_id, user_name)
        if group:
            return group
        # Either taken or the store is down; tell them which
        if not await get_group(code):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to create group"
            )

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Group {codes[0]} already exists" if group_in.code else "Could not find a free group code"
    )

@router.post("/{group_code}/join", response_model=GroupData)
async def join_existing_group(
    group_join: GroupJoin,
    group_code: str = Depends(get_group_code)
):
    """
    Join a group, creating it if the code is unused
    """
    user_name = group_join.userName.strip()
    user_id = generate_user_id(user_name)
    group = await join_group(group_code, user_id, user_name)
    if not group:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to join group"
        )
    
    return group

@router.get("/{group_code}", response_model=GroupData)
async def read_group(group_code: str = Depends(get_group_code)):
    group = await get_group(group_code)
    if not group:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )
    
    return group

@router.get("/{group_code}/members", response_model=List[GroupMember])
async def read_group_members(group_code: str = Depends(get_group_code)):
    """
    Get the roster in join order
    """
    return await get_group_members(group_code)

@router.put("/{group_code}/members/me", response_model=GroupMember)
async def rename_me(
    rename: MemberRename,
    group_code: str = Depends(get_group_code),
    user_id: str = Depends(get_current_user_id)
):
    """
    Change the current member's display name.

    Existing busy blocks keep the name they were created with.
    """
    result = await update_member_name(group_code, user_id, rename.userName.strip())
    if result == MutationStatus.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )
    if result == MutationStatus.UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to update member name"
        )
    
    members = await get_group_members(group_code)
    member = next((m for m in members if m.userId == user_id), None)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )
    return member
