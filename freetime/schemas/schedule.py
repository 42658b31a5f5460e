from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date

DEFAULT_LABEL = "Busy"

class TimeInterval(BaseModel):
    day: int = Field(..., ge=0, le=6)  # 0 = Monday, 6 = Sunday
    startHour: int = Field(..., ge=0, le=23)
    startMinute: int = Field(..., ge=0, le=59)
    endHour: int = Field(..., ge=0, le=23)
    endMinute: int = Field(..., ge=0, le=59)

class BusyBlockCreate(TimeInterval):
    label: str = DEFAULT_LABEL
    recurring: bool = False

class BusyBlockInput(BusyBlockCreate):
    """A block as handed to the store, with its owner filled in."""
    userId: str
    userName: str
    groupCode: str

class BusyBlockUpdate(BaseModel):
    day: Optional[int] = Field(None, ge=0, le=6)
    startHour: Optional[int] = Field(None, ge=0, le=23)
    startMinute: Optional[int] = Field(None, ge=0, le=59)
    endHour: Optional[int] = Field(None, ge=0, le=23)
    endMinute: Optional[int] = Field(None, ge=0, le=59)
    label: Optional[str] = None
    recurring: Optional[bool] = None

class BusyBlock(BusyBlockInput):
    id: str

class FreeSlot(TimeInterval):
    pass

class FreeSlotView(FreeSlot):
    display: str

class FreeDay(BaseModel):
    day: int
    dayName: str
    calendarDate: Optional[date] = None
    slots: List[FreeSlotView] = []

class FreeSlotsResponse(BaseModel):
    groupCode: str
    weekStart: Optional[date] = None
    memberCount: int
    days: List[FreeDay] = []
