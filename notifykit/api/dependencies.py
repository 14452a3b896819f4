from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException

from ..config import get_settings


async def require_token(authorization: Optional[str] = Header(default=None)) -> None:
    """Bearer-token check; open access when no token is configured."""
    expected = get_settings().api_token
    if not expected:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="invalid_token")
