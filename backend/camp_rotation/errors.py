"""
Rotation Scheduler Errors

Every error here is a validation-class failure raised before any mutation,
except Conflict, which reports a lost optimistic-version race on the
persisted schedule. Routes translate them into HTTP errors with a
"CODE: message" detail.
"""

from typing import Any, Dict, Optional


class RotationError(ValueError):
    """Base class for scheduler errors"""

    code = "ROTATION_ERROR"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": self.context}


class InvalidWindow(RotationError):
    code = "INVALID_WINDOW"


class InvalidInterruption(RotationError):
    code = "INVALID_INTERRUPTION"


class UnbalancedCapacity(RotationError):
    code = "UNBALANCED_CAPACITY"


class MissingResources(RotationError):
    code = "MISSING_RESOURCES"


class ScheduleLocked(RotationError):
    code = "SCHEDULE_LOCKED"
    status_code = 403


class NoRegistrations(RotationError):
    code = "NO_REGISTRATIONS"


class InvalidGroupCount(RotationError):
    code = "INVALID_GROUP_COUNT"


class Conflict(RotationError):
    code = "CONFLICT"
    status_code = 409


class NotFound(RotationError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidAssignment(RotationError):
    code = "INVALID_ASSIGNMENT"
