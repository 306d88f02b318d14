"""
Request and response messages of the KeyValueStorage service.

Field names follow the key_value protobuf package: KeyRequest, KeyValuePair,
KeysRequest, KeysResponse. The dict forms use the proto3 JSON mapping, where
bytes fields travel as standard base64.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from kvstorage.models.exceptions import InvalidArgumentError


def _require_str(payload: dict[str, Any], name: str, default: str | None = None) -> str:
    value = payload.get(name, default)
    if value is None:
        raise InvalidArgumentError(name, "missing field")
    if not isinstance(value, str):
        raise InvalidArgumentError(name, f"expected string, got {type(value).__name__}")
    return value


def _require_mapping(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidArgumentError("body", "expected a JSON object")
    return payload


@dataclass
class KeyRequest:
    key: str

    @classmethod
    def from_dict(cls, payload: Any) -> "KeyRequest":
        return cls(key=_require_str(_require_mapping(payload), "key"))

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key}


@dataclass
class KeyValuePair:
    key: str
    value: bytes = b""

    @classmethod
    def from_dict(cls, payload: Any) -> "KeyValuePair":
        payload = _require_mapping(payload)
        key = _require_str(payload, "key")
        # proto3 omits default values, so an absent value is empty bytes
        encoded = _require_str(payload, "value", default="")
        try:
            value = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise InvalidArgumentError("value", "not valid base64") from e
        return cls(key=key, value=value)

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": base64.b64encode(self.value).decode("ascii")}


@dataclass
class KeysRequest:
    prefix: str = ""

    @classmethod
    def from_dict(cls, payload: Any) -> "KeysRequest":
        return cls(prefix=_require_str(_require_mapping(payload), "prefix", default=""))

    def to_dict(self) -> dict[str, Any]:
        return {"prefix": self.prefix}


@dataclass
class KeysResponse:
    keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"keys": list(self.keys)}
