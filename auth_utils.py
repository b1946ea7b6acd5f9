#!/usr/bin/env python3
"""
Shared authentication utilities for the dashboard application
Administrators authenticate with a shared PIN, either directly through the
x-admin-pin header or with a bearer token issued by /api/auth/verify-pin.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.hash import bcrypt as bcrypt_hash

from fleet_services.config import fleet_settings

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 12
ADMIN_SUBJECT = "admin"

# Security
security = HTTPBearer(auto_error=False)


def verify_admin_pin(pin: Optional[str]) -> bool:
    """Check a PIN against ADMIN_PIN (plain text or a bcrypt hash)"""
    configured_pin = fleet_settings.admin_pin
    if not configured_pin or not pin:
        return False

    if configured_pin.startswith("$2"):
        try:
            return bcrypt_hash.verify(pin, configured_pin)
        except ValueError:
            return False

    return secrets.compare_digest(pin.encode("utf-8"), configured_pin.encode("utf-8"))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, fleet_settings.secret_key, algorithm=ALGORITHM)


def is_admin_token(token: Optional[str]) -> bool:
    if not token:
        return False
    try:
        payload = jwt.decode(token, fleet_settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return payload.get("sub") == ADMIN_SUBJECT


async def require_admin(
    x_admin_pin: Optional[str] = Header(default=None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Dependency to ensure the caller presented the admin PIN or an admin token"""
    if x_admin_pin and verify_admin_pin(x_admin_pin):
        return ADMIN_SUBJECT
    if credentials and is_admin_token(credentials.credentials):
        return ADMIN_SUBJECT

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Administrator access required",
    )
