from fastapi import HTTPException

from camp_rotation.errors import RotationError


def to_http_exception(exc: RotationError) -> HTTPException:
    """Translate a scheduler error into an HTTP error with a 'CODE: message' detail"""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
