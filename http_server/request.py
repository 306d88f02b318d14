import json
from dataclasses import dataclass
from typing import Any


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    body: bytes
    version: str

    def json(self) -> Any:
        """
        Decode the body as JSON. An empty body decodes to an empty object.

        Raises:
            ValueError: If the body is not valid UTF-8 JSON.
        """
        if not self.body:
            return {}
        try:
            return json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Malformed JSON body: {e}") from e

    @property
    def keep_alive(self) -> bool:
        return self.headers.get("connection", "").lower() != "close"
