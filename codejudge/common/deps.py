"""Shared FastAPI dependencies for authentication and request context."""

from __future__ import annotations

import asyncio
import logging
import os

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr

from codejudge.db.supabase import get_supabase

logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=True)


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: str
    email: EmailStr
    role: str = "user"
    subscription_type: str = "free"

    @property
    def is_premium(self) -> bool:
        return self.subscription_type == "premium"


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Validate the bearer token with Supabase Auth and load the profile row."""
    client = await get_supabase()
    token = credentials.credentials
    try:
        whoami_timeout = float(os.getenv("AUTH_WHOAMI_TIMEOUT", "5"))
        auth_user = await asyncio.wait_for(client.auth.get_user(token), timeout=whoami_timeout)
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials") from exc

    if not auth_user or not auth_user.user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")

    sup_user = auth_user.user
    resp = await (
        client.table("profiles")
        .select("id,email,role,subscription_type")
        .eq("id", sup_user.id)
        .limit(1)
        .execute()
    )
    rows = resp.data or []
    if not rows:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile not provisioned")
    profile = rows[0]

    current = CurrentUser(
        id=str(profile["id"]),
        email=profile.get("email") or sup_user.email,
        role=profile.get("role") or "user",
        subscription_type=profile.get("subscription_type") or "free",
    )
    request_id = getattr(request.state, "request_id", None)
    logger.info("auth.user_resolved user=%s request_id=%s", current.id, request_id)
    return current
