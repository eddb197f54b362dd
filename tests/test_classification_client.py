"""Tests for the classification client (no real network)."""

import base64
import json

import httpx
import pytest

from coincard.config import ClassificationSettings
from coincard.services.classification import (
    ClassificationClient,
    ClassificationError,
    ClassificationHTTPError,
    ClassificationRejectedError,
    ClassificationUnavailableError,
    MalformedResponseError,
)

IMAGE = b"\xff\xd8\xff\xe0fake-jpeg"


def make_client(settings, handler) -> ClassificationClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ClassificationClient(settings, http_client=http_client)


class TestClassifyImage:
    """Tests for classify_image."""

    async def test_success(self, classification_settings):
        """Test that the result text is returned."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": "Amount: 500, Recipient: Lan"})

        client = make_client(classification_settings, handler)
        reply = await client.classify_image(IMAGE)

        assert reply == "Amount: 500, Recipient: Lan"
        assert seen["url"] == "https://classifier.test/analyze"
        assert base64.b64decode(seen["body"]["image"]) == IMAGE

    async def test_http_error(self, classification_settings):
        """Test that a non-2xx status raises ClassificationHTTPError."""
        client = make_client(classification_settings, lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(ClassificationHTTPError) as exc_info:
            await client.classify_image(IMAGE)
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    async def test_error_field(self, classification_settings):
        """Test that an error payload is a rejection."""
        client = make_client(
            classification_settings,
            lambda r: httpx.Response(200, json={"error": "No money found"}),
        )
        with pytest.raises(ClassificationRejectedError, match="No money found"):
            await client.classify_image(IMAGE)

    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json=["Amount: 5"]),
        httpx.Response(200, json={}),
        httpx.Response(200, json={"result": 5}),
    ])
    async def test_malformed(self, classification_settings, response):
        """Test replies with no usable result text."""
        client = make_client(classification_settings, lambda r: response)
        with pytest.raises(MalformedResponseError):
            await client.classify_image(IMAGE)

    async def test_transport_error(self, classification_settings):
        """Test that an unreachable service raises ClassificationUnavailableError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(classification_settings, handler)
        with pytest.raises(ClassificationUnavailableError):
            await client.classify_image(IMAGE)

    async def test_transport_error_retried(self, classification_settings):
        """Test that a transport failure is retried up to max_attempts."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json={"result": "Amount: 50,000"})

        settings = classification_settings.model_copy(update={"max_attempts": 2})
        client = make_client(settings, handler)
        assert await client.classify_image(IMAGE) == "Amount: 50,000"
        assert len(calls) == 2

    async def test_http_error_not_retried(self, classification_settings):
        """Test that an HTTP error is answered once."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="busy")

        settings = classification_settings.model_copy(update={"max_attempts": 3})
        client = make_client(settings, handler)
        with pytest.raises(ClassificationHTTPError):
            await client.classify_image(IMAGE)
        assert len(calls) == 1

    async def test_empty_image(self, classification_settings):
        """Test that empty bytes are rejected before any request."""
        client = make_client(classification_settings, lambda r: httpx.Response(200))
        with pytest.raises(ClassificationError):
            await client.classify_image(b"")

    async def test_classify_file(self, classification_settings, tmp_path):
        """Test reading the image from disk."""
        path = tmp_path / "note.jpg"
        path.write_bytes(IMAGE)
        client = make_client(
            classification_settings,
            lambda r: httpx.Response(200, json={"result": "ok"}),
        )
        assert await client.classify_file(str(path)) == "ok"

    async def test_classify_missing_file(self, classification_settings, tmp_path):
        """Test that an unreadable file is a ClassificationError."""
        client = make_client(classification_settings, lambda r: httpx.Response(200))
        with pytest.raises(ClassificationError):
            await client.classify_file(str(tmp_path / "missing.jpg"))


class TestConnectivity:
    """Tests for the reachability probe."""

    async def test_probe_success(self, classification_settings):
        """Test that any HTTP answer counts as connected."""
        client = make_client(classification_settings, lambda r: httpx.Response(404))
        assert await client.check_connectivity() is True

    async def test_probe_failure(self, classification_settings):
        """Test that a transport error means offline."""
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        client = make_client(classification_settings, handler)
        assert await client.check_connectivity() is False

    async def test_fail_fast_when_offline(self, classification_settings):
        """Test that the image is not posted when the probe fails."""
        methods = []

        def handler(request):
            methods.append(request.method)
            raise httpx.ConnectError("offline", request=request)

        settings = ClassificationSettings(
            endpoint_url="https://classifier.test/analyze",
            connectivity_url="https://probe.test",
            check_connectivity=True,
            max_attempts=1,
        )
        client = make_client(settings, handler)
        with pytest.raises(ClassificationUnavailableError):
            await client.classify_image(IMAGE)
        assert methods == ["HEAD"]

    async def test_context_manager_closes_own_client(self, classification_settings):
        """Test that an owned httpx client is closed on exit."""
        async with ClassificationClient(classification_settings) as client:
            inner = client._get_client()
        assert inner.is_closed
