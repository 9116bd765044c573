# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage) -> "AppError":
        return cls(error.value.message, error.value.http_status)


class DocumentUnreadable(Exception):
    """The stored bytes could not be decoded as a PDF. Fatal for the request."""


class SearchFailed(Exception):
    """A single page/segment text search raised. Logged and skipped by the locator."""


class MalformedModelOutput(Exception):
    """The model reply was not the expected {answer, sources} JSON object."""


class LocateCancelled(Exception):
    """The caller abandoned the locate run between two pages."""
