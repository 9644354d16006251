from fastapi import Header, HTTPException, status
from typing import Optional

async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity, forwarded by the authenticating proxy in front of this service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return x_user_id.strip()
