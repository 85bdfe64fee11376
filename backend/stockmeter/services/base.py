"""
Base Service Interface and Errors

Services inherit from BaseService. Every failure the API can surface is
a ServiceError subclass carrying an ErrorCode; the HTTP layer maps codes
onto status codes.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Generic, Optional, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """
    Base class for services with a single entry point.

    Each service:
    - Has a defined input type
    - Has a defined output type
    - Can check its health
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name for logging."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """Execute the service's main function."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if service is healthy and can process requests."""
        pass


class ErrorCode(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL = "INTERNAL"


HTTP_STATUS = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.INTERNAL: 500,
}


class ServiceError(Exception):
    """Base exception for service errors."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.code]


class ValidationError(ServiceError):
    """Malformed input: symbol, date, pagination or period."""

    code = ErrorCode.BAD_REQUEST


class AuthenticationError(ServiceError):
    """Missing or unknown API key."""

    code = ErrorCode.UNAUTHENTICATED


class SubscriptionError(ServiceError):
    """No active subscription for the caller."""

    code = ErrorCode.FORBIDDEN


class NotFoundError(ServiceError):
    """Unknown stock or empty result."""

    code = ErrorCode.NOT_FOUND


class RateLimitError(ServiceError):
    """Rate limit exceeded."""

    code = ErrorCode.RATE_LIMITED

    def __init__(
        self,
        service_name: str,
        message: str,
        retry_after: int,
        details: dict = None,
    ):
        super().__init__(service_name, message, details)
        self.retry_after = retry_after


class InternalServiceError(ServiceError):
    """Store or database failure."""

    code = ErrorCode.INTERNAL

    def __init__(
        self,
        service_name: str,
        message: str = "Internal server error",
        retryable: bool = False,
        details: dict = None,
    ):
        super().__init__(service_name, message, details)
        self.retryable = retryable


_ERROR_TYPES = {
    ErrorCode.BAD_REQUEST: ValidationError,
    ErrorCode.UNAUTHENTICATED: AuthenticationError,
    ErrorCode.FORBIDDEN: SubscriptionError,
    ErrorCode.NOT_FOUND: NotFoundError,
}


def error_for(
    code: ErrorCode,
    service_name: str,
    message: str,
    retry_after: Optional[int] = None,
    retryable: bool = False,
) -> ServiceError:
    """Build the ServiceError subclass matching an ErrorCode."""
    if code == ErrorCode.RATE_LIMITED:
        return RateLimitError(service_name, message, retry_after=retry_after or 0)
    if code == ErrorCode.INTERNAL:
        return InternalServiceError(service_name, message, retryable=retryable)
    return _ERROR_TYPES[code](service_name, message)
