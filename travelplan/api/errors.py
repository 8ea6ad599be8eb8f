"""
Structured HTTP errors shared by the routers.
"""
from fastapi import HTTPException, status


def api_error(status_code: int, code: str, message: str, **extra) -> HTTPException:
    """HTTPException whose detail is {"code": ..., "message": ...} plus any extra fields."""
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message, **extra},
    )


def not_found(message: str) -> HTTPException:
    return api_error(status.HTTP_404_NOT_FOUND, "not_found", message)


def trip_day_not_found() -> HTTPException:
    return not_found("Trip day not found")
