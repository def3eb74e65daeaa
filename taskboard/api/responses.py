"""Response envelope helpers.

Every non-204 response body is ``{"message": str, "data": payload | null}``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


def envelope(message: str, data: Any = None) -> Dict[str, Any]:
    return {"message": message, "data": data}


def ok(data: Any) -> Dict[str, Any]:
    return envelope("OK", data)


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def not_found(resource: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


def server_error(message: str, error: Optional[Exception] = None) -> HTTPException:
    """500 carrying the underlying error message as ``data``."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=envelope(message, str(error) if error is not None else None),
    )
