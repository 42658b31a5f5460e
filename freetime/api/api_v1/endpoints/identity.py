from fastapi import APIRouter
from freetime.core.auth import generate_user_id
from freetime.schemas.group import GroupJoin, Identity

router = APIRouter()

@router.post("", response_model=Identity)
async def resolve_identity(name_in: GroupJoin):
    """
    Get the user id that goes with a display name.
    """
    user_name = name_in.userName.strip()
    return Identity(userId=generate_user_id(user_name), userName=user_name)
