"""
Booking Errors
Domain exceptions raised by the services and mapped to HTTP responses in main.py
"""

from typing import Any, Dict, Optional

from fastapi import status


class BookingError(Exception):
    """Base class for every error the booking services raise on purpose"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str, **extra: Any) -> None:
        self.message = message
        self.extra: Dict[str, Any] = extra
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationFailed(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotAuthenticated(BookingError):
    """Missing or unusable bearer credentials"""

    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidPin(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BookingError):
    """A status precondition no longer holds"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, current_status: Optional[str] = None, **extra: Any) -> None:
        self.current_status = current_status
        super().__init__(message, current_status=current_status, **extra)


class AlreadyProcessed(Conflict):
    def __init__(self, current_status: str) -> None:
        super().__init__("Booking already processed", current_status=current_status, details=f"status={current_status}")


class PaymentIntentMismatch(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidToken(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class Gone(BookingError):
    status_code = status.HTTP_410_GONE


class TokenExpired(Gone):
    pass


class TokenAlreadyUsed(Gone):
    pass


class UpstreamFailure(BookingError):
    """Payment processor or other upstream failure; the cause is logged, not returned"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
