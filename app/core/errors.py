# FILE: app/core/errors.py
from __future__ import annotations

from fastapi import HTTPException


class InvalidInput(HTTPException):
    """Missing/malformed fields, non-positive amounts, bad ranges."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class InvalidState(HTTPException):
    """The request is well-formed but the current data forbids it (e.g. stock too low)."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)
