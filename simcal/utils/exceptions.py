from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR          = "VALIDATION_ERROR"
    UNAUTHORIZED              = "UNAUTHORIZED"
    TOKEN_EXPIRED             = "TOKEN_EXPIRED"
    FORBIDDEN                 = "FORBIDDEN"
    NOT_FOUND                 = "NOT_FOUND"
    DUPLICATE_ENTRY           = "DUPLICATE_ENTRY"
    BOOKING_CONFLICT          = "BOOKING_CONFLICT"
    SIMULATOR_IN_USE          = "SIMULATOR_IN_USE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    REQUEST_ALREADY_PROCESSED = "REQUEST_ALREADY_PROCESSED"
    ACCOUNT_INACTIVE          = "ACCOUNT_INACTIVE"
    RESET_TOKEN_INVALID       = "RESET_TOKEN_INVALID"
    INTERNAL_SERVER_ERROR     = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling;
    ``extra`` is merged into the error body.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
        extra: dict | None = None,
    ):
        error = {
            "code": error_code,
            "details": details,
            "field": field,
        }
        if extra:
            error.update(extra)
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": error,
        })

    @property
    def error_code(self) -> str:
        return self.detail["error"]["code"]

    @property
    def message(self) -> str:
        return self.detail["message"]


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationException(AppException):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.VALIDATION_ERROR, field=field)


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class BookingConflictException(AppException):
    def __init__(self, conflicting_booking: dict):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "Booking conflict detected",
            ErrorCode.BOOKING_CONFLICT,
            extra={"conflictingBooking": conflicting_booking},
        )


class SimulatorInUseException(AppException):
    def __init__(self, simulator: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"Simulator {simulator} already has a session in progress",
            ErrorCode.SIMULATOR_IN_USE,
        )


class InvalidTransitionException(AppException):
    def __init__(self, current: str, target: str):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid status transition from '{current}' to '{target}'",
            ErrorCode.INVALID_STATUS_TRANSITION,
            extra={"from": current, "to": target},
        )


class RequestAlreadyProcessedException(AppException):
    def __init__(self, what: str = "Request"):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"{what} has already been processed",
            ErrorCode.REQUEST_ALREADY_PROCESSED,
        )


class AccountInactiveException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_403_FORBIDDEN,
            "Your account has been deactivated. Contact your manager.",
            ErrorCode.ACCOUNT_INACTIVE,
        )


class ResetTokenInvalidException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            "Invalid or expired password reset token",
            ErrorCode.RESET_TOKEN_INVALID,
        )
