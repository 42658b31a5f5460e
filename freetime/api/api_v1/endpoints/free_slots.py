from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import date
from freetime.core.auth import get_group_code
from freetime.schemas.schedule import FreeSlotsResponse
from freetime.services.block_service import get_blocks_for_week
from freetime.services.free_time_service import calculate_common_free_slots, group_free_slots_by_day
from freetime.services.group_service import get_group_members
from freetime.utils.intervals import start_of_week

router = APIRouter()

@router.get("/{group_code}/free-slots", response_model=FreeSlotsResponse)
async def get_free_slots(
    group_code: str = Depends(get_group_code),
    week_start: Optional[date] = Query(None, alias="weekStart", description="Any date in the week to label (YYYY-MM-DD)")
):
    """
    Get the windows of at least 30 minutes when every member is free.

    Days with no free window are left out. If `weekStart` is given, each day
    is labelled with its date in that Monday-based week.
    """
    monday = start_of_week(week_start) if week_start else None
    blocks = await get_blocks_for_week(group_code, monday)
    members = await get_group_members(group_code)
    
    slots = calculate_common_free_slots(blocks, monday)
    return FreeSlotsResponse(
        groupCode=group_code,
        weekStart=monday,
        memberCount=len(members),
        days=group_free_slots_by_day(slots, monday)
    )
