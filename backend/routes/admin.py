from __future__ import annotations

import hmac
import logging
import os

from fastapi import APIRouter, HTTPException

from ..models import AdminLoginIn, AdminLoginOut
from ..security import admin_key, create_access_token, jwt_configured


router = APIRouter(prefix="/api/admin", tags=["admin"])

_log = logging.getLogger("bigandbest.admin")


@router.post("/login", response_model=AdminLoginOut)
def admin_login(req: AdminLoginIn) -> AdminLoginOut:
    expected_user = os.getenv("ADMIN_USER", "admin")
    expected_password = os.getenv("ADMIN_PASSWORD", "admin")

    user_ok = hmac.compare_digest(req.username, expected_user)
    password_ok = hmac.compare_digest(req.password, expected_password)
    if not (user_ok and password_ok):
        _log.warning("admin login rejected user=%s", req.username)
        raise HTTPException(status_code=401, detail="Invalid admin credentials")

    if not jwt_configured():
        return AdminLoginOut(admin_key=admin_key())

    token = create_access_token(subject=req.username, role="admin")
    return AdminLoginOut(admin_key=admin_key(), access_token=token, token_type="bearer")
