"""
Domain Errors

Every failure the scheduler reports to a caller is one of these. Each error
carries a stable `code` and enough structure to explain itself; the API
layer renders `to_dict()` and maps the class to an HTTP status.
"""

from typing import Any, Iterable


class DomainError(Exception):
    """Base class for errors raised by domain and application code"""

    code = 'domain_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def extra(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {'error': self.code, 'detail': self.message, **self.extra()}


class NotFoundError(DomainError):
    """Missing equipment item or booking"""

    code = 'not_found'


class InvalidRangeError(DomainError):
    """Malformed or inverted date range"""

    code = 'invalid_range'


class BookingValidationError(DomainError):
    """Missing or inconsistent booking input"""

    code = 'validation_error'

    def __init__(self, message: str = '', missing_fields: Iterable[str] = ()):
        super().__init__(message)
        self.missing_fields = list(missing_fields)

    def extra(self) -> dict[str, Any]:
        if not self.missing_fields:
            return {}
        return {'missing_fields': self.missing_fields}


class ConflictError(DomainError):
    """Requested range is not available for the equipment item"""

    code = 'conflict'

    def __init__(self, message: str = '', conflicting_booking_ids: Iterable[Any] = ()):
        super().__init__(message)
        self.conflicting_booking_ids = [str(booking_id) for booking_id in conflicting_booking_ids]

    def extra(self) -> dict[str, Any]:
        return {'conflicting_booking_ids': self.conflicting_booking_ids}


class ForbiddenError(DomainError):
    """Caller is not allowed to act on this zone or booking"""

    code = 'forbidden'


class InvalidTransitionError(DomainError):
    """Lifecycle move not permitted from the current status"""

    code = 'invalid_transition'

    def __init__(self, current_status: str, action: str, message: str = ''):
        super().__init__(
            message or f"Cannot {action} a booking in status '{current_status}'"
        )
        self.current_status = current_status
        self.action = action

    def extra(self) -> dict[str, Any]:
        return {'current_status': self.current_status, 'action': self.action}


class ConcurrentModificationError(DomainError):
    """Optimistic retries exhausted while other writers kept changing the schedule"""

    code = 'concurrent_modification'

    def __init__(self, message: str = '', attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts

    def extra(self) -> dict[str, Any]:
        return {'attempts': self.attempts}


class StaleScheduleError(Exception):
    """
    Internal retry signal: the equipment schedule version moved between read
    and write. Never surfaced to callers.
    """
