"""Domain errors surfaced to API callers.

Every error is terminal for the current operation. Routers never catch these;
the global handler in ``meditrack.middleware.error_handler`` renders them as
``{"detail": ..., "code": ...}`` with the status code below.
"""

from __future__ import annotations


class MeditrackError(ValueError):
    """Base class for all domain errors."""

    status_code: int = 400
    code: str = "meditrack_error"
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidDuration(MeditrackError):
    status_code = 422
    code = "invalid_duration"
    default_message = "Session duration must be a positive number of minutes"


class InvalidCategory(MeditrackError):
    status_code = 422
    code = "invalid_category"
    default_message = "Unknown session category"


class SessionAlreadyRecorded(MeditrackError):
    status_code = 409
    code = "session_already_recorded"
    default_message = "A session is already recorded at this timestamp"


class GroupNotFound(MeditrackError):
    status_code = 404
    code = "group_not_found"
    default_message = "Group not found"


class AlreadyMember(MeditrackError):
    status_code = 409
    code = "already_member"
    default_message = "You are already a member of this group"


class NotMember(MeditrackError):
    status_code = 403
    code = "not_member"
    default_message = "You are not a member of this group"


class NotAuthorized(MeditrackError):
    status_code = 403
    code = "not_authorized"
    default_message = "Not authorized"


class AchievementNotFound(MeditrackError):
    status_code = 404
    code = "achievement_not_found"
    default_message = "Achievement not found"


class CapacityExceeded(MeditrackError):
    status_code = 409
    code = "capacity_exceeded"
    default_message = "Capacity exceeded"


class ConcurrentUpdate(MeditrackError):
    status_code = 409
    code = "concurrent_update"
    default_message = "A concurrent update for this user won the race; resubmit"
