# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    DOCUMENT_NOT_FOUND = ErrorInfo("Document not found", status.HTTP_404_NOT_FOUND)
    DOCUMENT_UNREADABLE = ErrorInfo(
        "Document could not be read, please retry",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    # Literal 422: the status constant was renamed across Starlette releases.
    NOT_A_PDF = ErrorInfo("Uploaded file is not a readable PDF", 422)
    EMPTY_QUESTION = ErrorInfo("Message must not be empty", status.HTTP_400_BAD_REQUEST)
    UPSTREAM_MODEL_ERROR = ErrorInfo(
        "Language model request failed", status.HTTP_502_BAD_GATEWAY
    )
