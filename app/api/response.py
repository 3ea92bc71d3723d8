# FILE: app/api/response.py
from __future__ import annotations

from typing import Any, Dict

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(msg: str, status_code: int = 200, **extra: Any) -> JSONResponse:
    """
    Confirmation wrapper:
    {
      "message": "...",
      ...extra (optional)
    }
    """
    payload: Dict[str, Any] = {"message": msg, **extra}
    # jsonable_encoder converts datetime/date/Decimal/Enum etc. to JSON-safe types
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def err(msg: str = "Something went wrong", *, status_code: int = 400) -> JSONResponse:
    """
    Error wrapper, the single shape every failure is rendered in:
    {
      "message": "..."
    }
    """
    return JSONResponse(status_code=status_code, content={"message": msg})
