"""
Structured errors returned by the service.
"""

from enum import Enum


class StatusCode(Enum):
    """Error kinds, named after the matching gRPC status codes."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAVAILABLE = "UNAVAILABLE"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    StatusCode.NOT_FOUND: 404,
    StatusCode.INVALID_ARGUMENT: 400,
    StatusCode.UNAVAILABLE: 503,
    StatusCode.UNIMPLEMENTED: 404,
    StatusCode.INTERNAL: 500,
}


class ServiceError(Exception):
    """
    A failed RPC, carried through the transport's error channel.

    Attributes:
        code: The error kind.
        message: Human readable description.
    """

    def __init__(self, code: StatusCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}")

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"error": {"code": self.code.value, "message": self.message}}
