"""
app/api/errors.py

Standard error payloads returned by every endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException


def error_payload(message: str, code: str, status_code: int) -> dict[str, Any]:
    """
    Build the ``{error, message, code, status, timestamp}`` body.
    """

    return {
        "error": True,
        "message": message,
        "code": code,
        "status": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def api_error(message: str, code: str, status_code: int) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=error_payload(message, code, status_code),
    )
