from typing import Optional

from fastapi import status


class AppException(Exception):
    """Base class for errors surfaced to API callers as {"error", "details"}."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInputException(AppException):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(AppException):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(AppException):
    status_code = status.HTTP_409_CONFLICT


class AlreadyCompletedException(ConflictException):
    """Conflict with a finished attempt, reported to callers as a bad request."""

    status_code = status.HTTP_400_BAD_REQUEST


class LimitExceededException(AppException):
    status_code = status.HTTP_403_FORBIDDEN


class StoreFailureException(AppException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ForbiddenException(AppException):
    status_code = status.HTTP_403_FORBIDDEN
