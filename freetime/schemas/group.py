from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class GroupMember(BaseModel):
    userId: str
    userName: str
    joinedAt: datetime

class GroupData(BaseModel):
    code: str
    members: List[GroupMember] = []
    createdAt: datetime

class GroupCreate(BaseModel):
    userName: str = Field(..., min_length=1)
    code: Optional[str] = None

class GroupJoin(BaseModel):
    userName: str = Field(..., min_length=1)

class MemberRename(BaseModel):
    userName: str = Field(..., min_length=1)

class Identity(BaseModel):
    userId: str
    userName: str
