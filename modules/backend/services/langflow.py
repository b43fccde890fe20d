"""
Langflow Client.

Async HTTP client for the Langflow "run flow" endpoint:

    POST {base_url}/api/v1/run/{flow_id}?stream=false

One request per call, no retries. Failures are raised as FlowRequestError
with a FlowErrorKind the bot can turn into a user-facing message.
"""

import json
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from modules.backend.core.exceptions import ExternalServiceError
from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.services.answer import JSONValue

logger = get_logger(__name__)

_BODY_PREVIEW_CHARS = 2000


class FlowErrorKind(str, Enum):
    """User-facing categories of Langflow failures."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    GENERIC = "generic"

    @classmethod
    def from_status(cls, status_code: int | None) -> "FlowErrorKind":
        if status_code in (401, 403):
            return cls.UNAUTHORIZED
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code == 413:
            return cls.PAYLOAD_TOO_LARGE
        return cls.GENERIC


class FlowRequestError(ExternalServiceError):
    """Raised when the Langflow call fails for any reason."""

    def __init__(
        self,
        message: str,
        kind: FlowErrorKind = FlowErrorKind.GENERIC,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class LangflowClient:
    """
    Client for a single Langflow flow.

    Usage:
        client = LangflowClient.from_config()
        data = await client.run("hello", session_id="42")
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        flow_id: str,
        api_key: str | None = None,
        output_component: str | None = None,
        include_sender: bool = False,
        stream_param: bool = True,
        timeout_seconds: float = 30.0,
        max_response_bytes: int = 2_000_000,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.flow_id = flow_id
        self.api_key = api_key or None
        self.output_component = output_component or None
        self.include_sender = include_sender
        self.stream_param = stream_param
        self.timeout_seconds = timeout_seconds
        self.max_response_bytes = max_response_bytes
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_config(cls) -> "LangflowClient":
        """Build a client from langflow.yaml and the LANGFLOW_API_KEY secret."""
        from modules.backend.core.config import get_app_config, get_settings

        config = get_app_config().langflow
        return cls(
            base_url=config.base_url,
            flow_id=config.flow_id,
            api_key=get_settings().langflow_api_key,
            output_component=config.output_component,
            include_sender=config.include_sender,
            stream_param=config.stream_param,
            timeout_seconds=config.timeout_seconds,
            max_response_bytes=config.max_response_bytes,
        )

    @property
    def run_url(self) -> str:
        return f"{self.base_url}/api/v1/run/{quote(self.flow_id, safe='')}"

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def build_payload(
        self,
        query: str,
        session_id: str,
        sender_name: str | None = None,
        sender_handle: str | None = None,
    ) -> dict[str, Any]:
        """
        Build the run request body.

        session_id keys the flow's conversation memory, so it is the chat id.
        """
        payload: dict[str, Any] = {
            "input_value": query,
            "session_id": session_id,
            "input_type": "chat",
            "output_type": "chat",
        }
        if self.include_sender:
            if sender_handle:
                payload["sender"] = sender_handle
            if sender_name:
                payload["sender_name"] = sender_name
        if self.output_component:
            payload["output_component"] = self.output_component
        return payload

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def run(
        self,
        query: str,
        session_id: str,
        sender_name: str | None = None,
        sender_handle: str | None = None,
    ) -> JSONValue:
        """
        Run the flow once and return the decoded JSON response.

        A successful response whose body is not JSON yields None.

        Raises:
            FlowRequestError: On HTTP error status, transport error,
                timeout, or a body larger than max_response_bytes
        """
        client = await self._get_client()
        payload = self.build_payload(query, session_id, sender_name, sender_handle)
        params = {"stream": "false"} if self.stream_param else None

        log_with_source(
            logger,
            "langflow",
            "debug",
            "Langflow request",
            flow_id=self.flow_id,
            session_id=session_id,
            query_length=len(query),
        )

        try:
            async with client.stream(
                "POST",
                self.run_url,
                json=payload,
                headers=self.build_headers(),
                params=params,
                timeout=self.timeout_seconds,
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise FlowRequestError(
                        f"Langflow returned HTTP {response.status_code}",
                        kind=FlowErrorKind.from_status(response.status_code),
                        status_code=response.status_code,
                        body=body[:_BODY_PREVIEW_CHARS],
                    )
                raw = await self._read_capped(response)
                status_code = response.status_code

        except httpx.TimeoutException as e:
            raise FlowRequestError(
                f"Langflow request timed out after {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise FlowRequestError(f"Langflow request failed: {e}") from e

        log_with_source(
            logger,
            "langflow",
            "debug",
            "Langflow response",
            flow_id=self.flow_id,
            session_id=session_id,
            status_code=status_code,
            size=len(raw),
        )

        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(
                "Langflow response is not JSON",
                extra={"session_id": session_id, "body": raw[:200].decode("utf-8", errors="replace")},
            )
            return None

    async def _read_capped(self, response: httpx.Response) -> bytes:
        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > self.max_response_bytes:
                raise FlowRequestError(
                    f"Langflow response exceeds {self.max_response_bytes} bytes",
                    status_code=response.status_code,
                )
            chunks.append(chunk)
        return b"".join(chunks)
