"""
RequestHandler - adapts the KeyValueStorage RPCs onto the StorageEngine.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from kvstorage.engine.engine import StorageEngine, coerce_value, validate_key
from kvstorage.models.exceptions import (
    EngineClosedError,
    InvalidArgumentError,
    KeyNotFoundError,
    StorageError,
)
from kvstorage.service.messages import KeyRequest, KeysRequest, KeysResponse, KeyValuePair
from kvstorage.service.status import ServiceError, StatusCode

logger = logging.getLogger(__name__)

SERVICE_NAME = "key_value.KeyValueStorage"


class RequestHandler:
    """
    Implements FindByKey, Delete, Insert and Keys.

    Each RPC performs exactly one engine call and translates engine failures
    1:1 into ServiceError:
    - KeyNotFoundError -> NOT_FOUND
    - InvalidArgumentError -> INVALID_ARGUMENT
    - EngineClosedError -> UNAVAILABLE
    - anything else -> INTERNAL (the store stays usable for later requests)
    """

    def __init__(self, engine: StorageEngine) -> None:
        self._engine = engine
        self._methods = {
            "FindByKey": (KeyRequest.from_dict, self.find_by_key),
            "Delete": (KeyRequest.from_dict, self.delete),
            "Insert": (KeyValuePair.from_dict, self.insert),
            "Keys": (KeysRequest.from_dict, self.keys),
        }

    @property
    def engine(self) -> StorageEngine:
        return self._engine

    @property
    def method_names(self) -> list[str]:
        return list(self._methods)

    async def find_by_key(self, request: KeyRequest) -> KeyValuePair:
        """Look up a key and return it with its value."""
        with self._translate_errors("FindByKey"):
            validate_key(request.key)
            value = self._engine.get(request.key)
        return KeyValuePair(key=request.key, value=value)

    async def delete(self, request: KeyRequest) -> KeyRequest:
        """Delete a key and echo it back."""
        with self._translate_errors("Delete"):
            validate_key(request.key)
            self._engine.delete(request.key)
        return KeyRequest(key=request.key)

    async def insert(self, request: KeyValuePair) -> KeyValuePair:
        """Upsert a key and return the pair as stored."""
        with self._translate_errors("Insert"):
            validate_key(request.key)
            value = coerce_value(request.value)
            self._engine.put(request.key, value)
        return KeyValuePair(key=request.key, value=value)

    async def keys(self, request: KeysRequest) -> KeysResponse:
        """List the keys starting with the prefix, in byte order."""
        with self._translate_errors("Keys"):
            keys = self._engine.scan_prefix(request.prefix)
        return KeysResponse(keys=keys)

    async def dispatch(self, method: str, payload: Any) -> dict[str, Any]:
        """
        Decode a JSON-shaped request, run the named RPC and encode the result.

        Args:
            method: RPC name, e.g. "FindByKey".
            payload: Decoded JSON body.

        Returns:
            The response message as a dict.

        Raises:
            ServiceError: On any failure, including an unknown method.
        """
        if method not in self._methods:
            raise ServiceError(
                StatusCode.UNIMPLEMENTED, f"Unknown method {SERVICE_NAME}/{method}"
            )

        decode, call = self._methods[method]
        with self._translate_errors(method):
            request = decode(payload)

        response = await call(request)
        return response.to_dict()

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ServiceError:
            raise
        except KeyNotFoundError as e:
            logger.debug(f"{operation}: no such key {e.key!r}")
            raise ServiceError(StatusCode.NOT_FOUND, f"no such key: {e.key}") from e
        except InvalidArgumentError as e:
            logger.debug(f"{operation}: invalid argument: {e}")
            raise ServiceError(StatusCode.INVALID_ARGUMENT, str(e)) from e
        except EngineClosedError as e:
            logger.warning(f"{operation}: rejected, storage engine is closed")
            raise ServiceError(StatusCode.UNAVAILABLE, str(e)) from e
        except StorageError as e:
            logger.error(f"{operation}: storage failure: {e}")
            raise ServiceError(StatusCode.INTERNAL, str(e)) from e
        except Exception as e:
            logger.exception(f"{operation}: unexpected failure")
            raise ServiceError(StatusCode.INTERNAL, "internal error") from e
