"""
KeyValueStorage service: messages, status codes and the request handler.
"""

from kvstorage.service.handler import SERVICE_NAME, RequestHandler
from kvstorage.service.messages import KeyRequest, KeysRequest, KeysResponse, KeyValuePair
from kvstorage.service.status import ServiceError, StatusCode

__all__ = [
    "SERVICE_NAME",
    "RequestHandler",
    "KeyRequest",
    "KeyValuePair",
    "KeysRequest",
    "KeysResponse",
    "ServiceError",
    "StatusCode",
]
