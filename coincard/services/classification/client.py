"""
Classification Service Client

Sends a captured image to the remote vision-language endpoint and returns
its free-text reply.

Wire format:
    request:  POST {"image": "<base64>"}
    success:  {"result": "Amount: 50,000, Recipient: ..."}
    failure:  {"error": "..."} and/or a non-2xx status

CRITICAL: Only the "result" string of a successful reply is ever handed to
the parser. Every other outcome is raised as a ClassificationError and the
caller falls back to manual entry.

DESIGN DECISION: Only transport failures (connection refused, reset, DNS)
are retried. An HTTP error or an error payload is an answer, and asking
again is the user's decision ("take photo again").
"""

import asyncio
import base64
from pathlib import Path
from typing import Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from coincard.config import ClassificationSettings, get_settings

logger = structlog.get_logger(__name__)


class ClassificationError(Exception):
    """Base exception for classification failures."""
    pass


class ClassificationUnavailableError(ClassificationError):
    """The service could not be reached."""
    pass


class ClassificationHTTPError(ClassificationError):
    """The service answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Classification service returned {status_code}: {body[:200]}")


class ClassificationRejectedError(ClassificationError):
    """The service answered with an explicit error field."""
    pass


class MalformedResponseError(ClassificationError):
    """The reply was not JSON or had no result string."""
    pass


class ClassificationClient:
    """
    Async HTTP client for the classification endpoint.

    The endpoint has no timeout unless one is configured; a hung request
    only blocks the caller awaiting it.
    """

    def __init__(
        self,
        settings: Optional[ClassificationSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().classification
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ClassificationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def check_connectivity(self) -> bool:
        """
        Best-effort reachability probe (HEAD to a well-known host).

        Any HTTP answer counts as connected.
        """
        try:
            await self._get_client().head(self._settings.connectivity_url)
            return True
        except httpx.HTTPError as e:
            logger.info("connectivity_probe_failed", url=self._settings.connectivity_url, error=str(e))
            return False

    async def _post(self, payload: dict) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await self._get_client().post(
                    self._settings.endpoint_url,
                    json=payload,
                )

    async def classify_image(self, image_bytes: bytes) -> str:
        """
        Classify an image and return the model's reply text.

        Raises:
            ClassificationUnavailableError: network unreachable
            ClassificationHTTPError: non-2xx status
            ClassificationRejectedError: reply carried an error field
            MalformedResponseError: reply was not usable JSON
        """
        if not image_bytes:
            raise ClassificationError("Image is empty")

        if self._settings.check_connectivity and not await self.check_connectivity():
            raise ClassificationUnavailableError("No network connection")

        payload = {"image": base64.b64encode(image_bytes).decode("ascii")}

        try:
            response = await self._post(payload)
        except httpx.TransportError as e:
            raise ClassificationUnavailableError(f"Classification service unreachable: {e}") from e

        logger.debug("classification_response", status=response.status_code)

        if not response.is_success:
            raise ClassificationHTTPError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Reply is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponseError("Reply is not a JSON object")

        if data.get("error"):
            raise ClassificationRejectedError(str(data["error"]))

        result = data.get("result")
        if not isinstance(result, str):
            raise MalformedResponseError("Reply has no result text")

        return result

    async def classify_file(self, path: str) -> str:
        """Read an image from disk and classify it."""
        try:
            image_bytes = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            raise ClassificationError(f"Cannot read image {path}: {e}") from e
        return await self.classify_image(image_bytes)
