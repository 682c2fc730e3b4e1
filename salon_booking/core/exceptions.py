"""
Ошибки бизнес-логики записи.
Каждая ошибка несет код для API и HTTP статус.
"""


class BookingError(Exception):
    """Базовая ошибка бизнес-логики"""

    code = "INTERNAL_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidData(BookingError):
    code = "INVALID_DATA"


class InvalidDate(BookingError):
    code = "INVALID_DATE"


class InvalidTime(BookingError):
    code = "INVALID_TIME"


class NotFound(BookingError):
    code = "NOT_FOUND"
    status_code = 404


class NoAvailableMasters(BookingError):
    code = "NO_MASTERS"
    status_code = 409


class SlotTaken(BookingError):
    code = "TIME_SLOT_TAKEN"
    status_code = 409


class PermissionDenied(BookingError):
    code = "PERMISSION_DENIED"
    status_code = 403


class InvalidTransition(BookingError):
    code = "INVALID_TRANSITION"
    status_code = 409


class CannotModifyPast(BookingError):
    code = "CANNOT_MODIFY_PAST"


class Unauthorized(BookingError):
    code = "AUTH_REQUIRED"
    status_code = 401
