from typing import Optional
import random
import string

from fastapi import Header, HTTPException, status
from freetime.core.errors import InvalidGroupCode

GROUP_CODE_LENGTH = 4

def generate_user_id(user_name: str) -> str:
    """
    Derive a stable user id from a display name.

    Same name gives the same id on every client. This is a 32-bit string hash
    over UTF-16 code units, not a security boundary: two people who pick the
    same name share an identity.
    """
    encoded = user_name.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        unit = int.from_bytes(encoded[i:i + 2], "little")
        value = (value * 31 + unit) & 0xFFFFFFFF
    # Reinterpret as a signed 32-bit integer before taking the magnitude
    if value >= 0x80000000:
        value -= 0x100000000
    return f"user-{abs(value)}"

def generate_group_code() -> str:
    """Generate a random four letter group code."""
    return ''.join(random.choices(string.ascii_uppercase, k=GROUP_CODE_LENGTH))

def normalize_group_code(code: str) -> str:
    """Trim and uppercase a user-entered code, rejecting anything but four letters."""
    normalized = (code or "").strip().upper()
    if len(normalized) != GROUP_CODE_LENGTH or not all(c in string.ascii_uppercase for c in normalized):
        raise InvalidGroupCode(f"Group code must be {GROUP_CODE_LENGTH} letters, got {code!r}")
    return normalized

async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Get the caller's identity from the X-User-Id header."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-User-Id header"
        )
    return user_id

async def get_group_code(group_code: str) -> str:
    """Path dependency that normalizes `{group_code}` or rejects it with 422."""
    try:
        return normalize_group_code(group_code)
    except InvalidGroupCode as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
