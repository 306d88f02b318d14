"""
Tests for the RequestHandler and its messages.
"""

import base64

import pytest

from kvstorage.engine import StorageEngine
from kvstorage.models.exceptions import InternalError
from kvstorage.service import (
    KeyRequest,
    KeysRequest,
    KeysResponse,
    KeyValuePair,
    RequestHandler,
    ServiceError,
    StatusCode,
)


class TestFindByKey:
    async def test_found(self, handler, engine):
        engine.put("test_key", b"test_value")

        result = await handler.find_by_key(KeyRequest(key="test_key"))

        assert result == KeyValuePair(key="test_key", value=b"test_value")

    async def test_missing_key(self, handler):
        with pytest.raises(ServiceError) as exc_info:
            await handler.find_by_key(KeyRequest(key="nonexistent"))

        assert exc_info.value.code is StatusCode.NOT_FOUND
        assert "no such key" in exc_info.value.message

    async def test_empty_key(self, handler):
        with pytest.raises(ServiceError) as exc_info:
            await handler.find_by_key(KeyRequest(key=""))

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT


class TestInsert:
    async def test_insert_echoes_pair(self, handler, engine):
        result = await handler.insert(KeyValuePair(key="k", value=b"v"))

        assert result == KeyValuePair(key="k", value=b"v")
        assert engine.get("k") == b"v"

    async def test_insert_empty_value(self, handler, engine):
        result = await handler.insert(KeyValuePair(key="k", value=b""))

        assert result.value == b""
        assert engine.get("k") == b""

    async def test_insert_overwrites(self, handler, engine):
        await handler.insert(KeyValuePair(key="k", value=b"value1"))
        await handler.insert(KeyValuePair(key="k", value=b"value2"))

        assert engine.get("k") == b"value2"

    async def test_insert_empty_key(self, handler, engine):
        with pytest.raises(ServiceError) as exc_info:
            await handler.insert(KeyValuePair(key="", value=b"v"))

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT
        assert "empty key" in exc_info.value.message
        assert len(engine) == 0


class TestDelete:
    async def test_delete_echoes_key(self, handler, engine):
        engine.put("k", b"v")

        result = await handler.delete(KeyRequest(key="k"))

        assert result == KeyRequest(key="k")
        assert "k" not in engine

    async def test_delete_missing_key(self, handler):
        with pytest.raises(ServiceError) as exc_info:
            await handler.delete(KeyRequest(key="absent"))

        assert exc_info.value.code is StatusCode.NOT_FOUND

    async def test_delete_missing_key_ignored(self, lenient_engine):
        handler = RequestHandler(lenient_engine)

        result = await handler.delete(KeyRequest(key="absent"))

        assert result == KeyRequest(key="absent")

    async def test_delete_only_touches_named_key(self, handler, engine):
        engine.put("a", b"1")
        engine.put("ab", b"2")

        await handler.delete(KeyRequest(key="a"))

        assert engine.scan_prefix("") == ["ab"]


class TestKeys:
    async def test_prefix(self, handler, engine, sample_entries):
        for key, value in sample_entries:
            engine.put(key, value)

        assert await handler.keys(KeysRequest(prefix="a")) == KeysResponse(keys=["a1", "a2"])
        assert (await handler.keys(KeysRequest(prefix=""))).keys == ["a1", "a2", "b1"]

    async def test_no_match_is_empty_list(self, handler, engine, sample_entries):
        for key, value in sample_entries:
            engine.put(key, value)

        response = await handler.keys(KeysRequest(prefix="c"))

        assert response.keys == []


class TestErrorTranslation:
    async def test_closed_engine_is_unavailable(self):
        engine = StorageEngine()
        handler = RequestHandler(engine)
        engine.close()

        with pytest.raises(ServiceError) as exc_info:
            await handler.keys(KeysRequest(prefix=""))

        assert exc_info.value.code is StatusCode.UNAVAILABLE

    async def test_internal_error_is_scoped_to_request(self, handler, engine, monkeypatch):
        """A failing request reports INTERNAL and the store keeps working."""
        engine.put("k", b"v")

        def broken_get(key):
            raise InternalError("simulated")

        monkeypatch.setattr(engine, "get", broken_get)
        with pytest.raises(ServiceError) as exc_info:
            await handler.find_by_key(KeyRequest(key="k"))
        assert exc_info.value.code is StatusCode.INTERNAL

        monkeypatch.undo()
        assert (await handler.find_by_key(KeyRequest(key="k"))).value == b"v"

    async def test_unexpected_exception_is_internal(self, handler, engine, monkeypatch):
        def broken_scan(prefix):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine, "scan_prefix", broken_scan)

        with pytest.raises(ServiceError) as exc_info:
            await handler.keys(KeysRequest(prefix=""))

        assert exc_info.value.code is StatusCode.INTERNAL
        assert exc_info.value.message == "internal error"

    def test_error_to_dict(self):
        error = ServiceError(StatusCode.NOT_FOUND, "no such key: k")

        assert error.to_dict() == {"error": {"code": "NOT_FOUND", "message": "no such key: k"}}
        assert StatusCode.NOT_FOUND.http_status == 404
        assert StatusCode.INVALID_ARGUMENT.http_status == 400


class TestDispatch:
    """JSON-shaped requests as delivered by the transport."""

    async def test_insert_and_find(self, handler):
        encoded = base64.b64encode(b"\x00binary\xff").decode()

        inserted = await handler.dispatch("Insert", {"key": "k", "value": encoded})
        found = await handler.dispatch("FindByKey", {"key": "k"})

        assert inserted == {"key": "k", "value": encoded}
        assert found == inserted

    async def test_insert_without_value_stores_empty_bytes(self, handler, engine):
        result = await handler.dispatch("Insert", {"key": "k"})

        assert result == {"key": "k", "value": ""}
        assert engine.get("k") == b""

    async def test_keys_without_prefix_lists_all(self, handler, engine):
        engine.put("b", b"")
        engine.put("a", b"")

        assert await handler.dispatch("Keys", {}) == {"keys": ["a", "b"]}

    async def test_delete(self, handler, engine):
        engine.put("k", b"v")

        assert await handler.dispatch("Delete", {"key": "k"}) == {"key": "k"}

    async def test_unknown_method(self, handler):
        with pytest.raises(ServiceError) as exc_info:
            await handler.dispatch("Scan", {})

        assert exc_info.value.code is StatusCode.UNIMPLEMENTED

    @pytest.mark.parametrize(
        "method, payload",
        [
            ("FindByKey", {}),
            ("FindByKey", {"key": 42}),
            ("Insert", {"key": "k", "value": "***not base64***"}),
            ("Keys", {"prefix": ["a"]}),
            ("Delete", ["not", "an", "object"]),
        ],
    )
    async def test_malformed_requests(self, handler, method, payload):
        with pytest.raises(ServiceError) as exc_info:
            await handler.dispatch(method, payload)

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT

    def test_method_names(self, handler):
        assert sorted(handler.method_names) == ["Delete", "FindByKey", "Insert", "Keys"]
