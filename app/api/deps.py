# app/api/deps.py
from __future__ import annotations

from typing import Optional, Generator

from fastapi import Header, HTTPException
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal


# =========================================================
# DB (per request)
# =========================================================
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =========================================================
# AUTH HELPERS
# =========================================================
def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_token(raw_token: str) -> dict:
    try:
        return jwt.decode(raw_token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def create_access_token(user_id: str, **claims) -> str:
    """Issue a token whose `sub` is the opaque caller id (used by tests and tooling)."""
    return jwt.encode({"sub": str(user_id), **claims}, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    The caller is identified only by the token's `sub` claim.
    No user table is consulted.
    """
    raw = _extract_bearer(authorization)
    if not raw:
        raise HTTPException(status_code=401, detail="Missing token")

    payload = _decode_token(raw)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return str(sub)
