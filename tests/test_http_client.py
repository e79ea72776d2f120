"""
Tests for the shared request executor.

These tests verify:
- Header construction and bearer auth
- Body serialization rules per HTTP method
- 204 handling
- Error message extraction from non-2xx responses
- Decode and transport failures are returned, never raised
"""

import json

import httpx
import pytest

from tools.http_client import (
    ApiClient,
    Failure,
    FailureKind,
    RequestDescriptor,
    Success,
    extract_error_message,
    truncate,
)

URL = "https://api.example.test/v2/things"


def make_client(handler, **kwargs):
    return ApiClient(user_agent="test-agent/1.0", transport=httpx.MockTransport(handler), **kwargs)


class Recorder:
    """Mock transport handler that records requests."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


class TestRequestDescriptor:
    """Tests for RequestDescriptor."""

    def test_default_method_is_get(self):
        assert RequestDescriptor(URL).method == "GET"

    def test_method_is_normalized(self):
        assert RequestDescriptor(URL, method="patch").method == "PATCH"

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError, match="Unsupported HTTP method"):
            RequestDescriptor(URL, method="TRACE")

    def test_immutable(self):
        descriptor = RequestDescriptor(URL)

        with pytest.raises(AttributeError):
            descriptor.url = "https://other.test"

    def test_sends_body(self):
        assert RequestDescriptor(URL, "POST", {"a": 1}).sends_body
        assert RequestDescriptor(URL, "PUT", {"a": 1}).sends_body
        assert RequestDescriptor(URL, "PATCH", {"a": 1}).sends_body
        assert not RequestDescriptor(URL, "GET", {"a": 1}).sends_body
        assert not RequestDescriptor(URL, "DELETE", {"a": 1}).sends_body
        assert not RequestDescriptor(URL, "POST").sends_body


class TestHelpers:
    """Tests for error extraction helpers."""

    def test_truncate_short_text(self):
        assert truncate("abc", 10) == "abc"

    def test_truncate_long_text(self):
        assert truncate("abcdefghij", 4) == "abcd..."

    def test_message_field_first(self):
        body = json.dumps({"id": "forbidden", "error": "nope", "message": "quota exceeded"})

        assert extract_error_message(body, 200) == "quota exceeded"

    def test_error_field_second(self):
        body = json.dumps({"id": "forbidden", "error": "bad request"})

        assert extract_error_message(body, 200) == "bad request"

    def test_id_field_last(self):
        assert extract_error_message(json.dumps({"id": "not_found"}), 200) == "not_found"

    def test_non_string_field_is_serialized(self):
        body = json.dumps({"error": {"code": 42}})

        assert extract_error_message(body, 200) == '{"code": 42}'

    def test_json_without_known_fields_uses_raw_text(self):
        body = json.dumps({"detail": "x"})

        assert extract_error_message(body, 200) == body

    def test_invalid_json_uses_truncated_raw_text(self):
        assert extract_error_message("<html>" + "x" * 50, 10) == "<html>xxxx..."


class TestApiClientRequests:
    """Tests for what ApiClient sends."""

    @pytest.mark.asyncio
    async def test_headers_with_credential(self):
        recorder = Recorder(httpx.Response(200, json={}))
        client = make_client(recorder)

        await client.execute(RequestDescriptor(URL), "secret-token")

        headers = recorder.requests[0].headers
        assert headers["User-Agent"] == "test-agent/1.0"
        assert headers["Authorization"] == "Bearer secret-token"
        assert headers["Content-Type"] == "application/json"
        assert headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_credential(self):
        recorder = Recorder(httpx.Response(200, json={}))
        client = make_client(recorder)

        await client.execute(RequestDescriptor(URL))

        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    async def test_body_methods_serialize_body(self, method):
        recorder = Recorder(httpx.Response(200, json={}))
        client = make_client(recorder)

        await client.execute(RequestDescriptor(URL, method, {"spec": {"name": "site"}}), "t")

        request = recorder.requests[0]
        assert request.method == method
        assert json.loads(request.content) == {"spec": {"name": "site"}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    async def test_get_and_delete_never_send_body(self, method):
        recorder = Recorder(httpx.Response(200, json={}))
        client = make_client(recorder)

        await client.execute(RequestDescriptor(URL, method, {"ignored": True}), "t")

        request = recorder.requests[0]
        assert request.method == method
        assert request.content == b""

    @pytest.mark.asyncio
    async def test_exactly_one_request(self):
        recorder = Recorder(httpx.Response(500, text="boom"))
        client = make_client(recorder)

        await client.execute(RequestDescriptor(URL))

        assert len(recorder.requests) == 1


class TestApiClientOutcomes:
    """Tests for response normalization."""

    @pytest.mark.asyncio
    async def test_success_payload(self):
        client = make_client(Recorder(httpx.Response(200, json={"app": {"id": "a1"}})))

        outcome = await client.execute(RequestDescriptor(URL))

        assert outcome == Success({"app": {"id": "a1"}})
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_204_is_empty_success_without_parsing(self):
        client = make_client(Recorder(httpx.Response(204, text="definitely not json")))

        outcome = await client.execute(RequestDescriptor(URL, "DELETE"))

        assert outcome == Success(None)

    @pytest.mark.asyncio
    async def test_2xx_empty_body_is_empty_success(self):
        client = make_client(Recorder(httpx.Response(202, text="")))

        outcome = await client.execute(RequestDescriptor(URL, "POST", {}))

        assert outcome == Success(None)

    @pytest.mark.asyncio
    async def test_http_error_with_json_message(self):
        client = make_client(Recorder(httpx.Response(429, json={"message": "quota exceeded"})))

        outcome = await client.execute(RequestDescriptor(URL))

        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.HTTP_ERROR
        assert outcome.detail == "quota exceeded"
        assert outcome.status_code == 429
        assert not outcome.ok

    @pytest.mark.asyncio
    async def test_http_error_with_raw_text(self):
        client = make_client(Recorder(httpx.Response(502, text="Bad Gateway")))

        outcome = await client.execute(RequestDescriptor(URL))

        assert outcome == Failure(FailureKind.HTTP_ERROR, "Bad Gateway", 502)
        assert outcome.describe() == "HTTP 502: Bad Gateway"

    @pytest.mark.asyncio
    async def test_http_error_with_empty_body(self):
        client = make_client(Recorder(httpx.Response(404, text="")))

        outcome = await client.execute(RequestDescriptor(URL))

        assert outcome.kind == FailureKind.HTTP_ERROR
        assert outcome.detail == "HTTP 404"

    @pytest.mark.asyncio
    async def test_decode_error(self):
        client = make_client(Recorder(httpx.Response(200, text="not-json")))

        outcome = await client.execute(RequestDescriptor(URL))

        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.DECODE_ERROR
        assert "not-json" in outcome.detail

    @pytest.mark.asyncio
    async def test_decode_error_excerpt_is_truncated(self):
        client = make_client(Recorder(httpx.Response(200, text="<" * 1000)))
        client.excerpt_chars = 20

        outcome = await client.execute(RequestDescriptor(URL))

        assert outcome.kind == FailureKind.DECODE_ERROR
        assert outcome.detail.endswith("<" * 20 + "...")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = make_client(refuse)

        outcome = await client.execute(RequestDescriptor(URL))

        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.TRANSPORT_ERROR
        assert "Connection refused" in outcome.detail
        assert outcome.status_code is None

    @pytest.mark.asyncio
    async def test_non_ascii_credential_is_transport_error(self):
        recorder = Recorder(httpx.Response(200, json={}))
        client = make_client(recorder)

        outcome = await client.execute(RequestDescriptor(URL), "\ufeffdop_v1_abc")

        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.TRANSPORT_ERROR
        assert "non-ASCII" in outcome.detail
        assert "dop_v1_abc" not in outcome.detail
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(slow)

        outcome = await client.execute(RequestDescriptor(URL))

        assert outcome.kind == FailureKind.TRANSPORT_ERROR

    @pytest.mark.asyncio
    async def test_repeated_get_is_structurally_equal(self):
        client = make_client(Recorder(httpx.Response(200, json={"deployments": []})))
        descriptor = RequestDescriptor(URL)

        first = await client.execute(descriptor, "t")
        second = await client.execute(descriptor, "t")

        assert first == second


class TestApiClientConfig:
    """Tests for configuration defaults."""

    def test_timeout_from_policy(self):
        client = ApiClient(user_agent="x")

        assert client.timeout == 30

    def test_explicit_timeout(self):
        client = ApiClient(user_agent="x", timeout=2.5)

        assert client.timeout == 2.5
