import logging
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from lmchat.config import Settings, get_settings, normalize_server_url
from lmchat.models.chat_types import ChatRequest, ModelInfo, ModelList

# Configure logger
logger = logging.getLogger(__name__)

# Recommended sampling for thinking mode
REASONING_PRESET: dict[str, Any] = {
    "temperature": 0.6,
    "top_p": 0.95,
    "top_k": 20,
    "min_p": 0,
}

# Recommended sampling for non-thinking mode; no "thinking" key is sent
STANDARD_PRESET: dict[str, Any] = {
    "temperature": 0.7,
    "top_p": 0.8,
    "top_k": 20,
    "min_p": 0,
}


class UpstreamError(Exception):
    """Base class for failures talking to the inference server"""


class UpstreamConnectionError(UpstreamError):
    """The inference server could not be reached, or the stream broke off"""


class UpstreamStatusError(UpstreamError):
    """The inference server answered with a non-success status"""

    def __init__(self, status_code: int, reason: str, body: str):
        super().__init__(f"LM Studio server error: {status_code} {reason}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


class UpstreamStream:
    """
    An open streaming response from the inference server.

    Owns the HTTP response (and the client, when it created one) until
    aclose() is called. aclose() is idempotent.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient | None = None):
        self._response = response
        self._client = client
        self.closed = False

    async def chunks(self) -> AsyncGenerator[bytes, None]:
        """Raw body fragments as they arrive."""
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            # Transport failures and undecodable bodies (bad gzip) alike
            raise UpstreamConnectionError(f"Stream interrupted: {e}") from e

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._response.aclose()
        if self._client is not None:
            await self._client.aclose()


class LMStudioService:
    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        # Injected clients are shared and never closed here
        self._http_client = http_client

    def resolve_server_url(self, server_url: str | None) -> str:
        if server_url and server_url.strip():
            return normalize_server_url(server_url)
        return self.settings.server_url

    def build_payload(self, request: ChatRequest) -> dict[str, Any]:
        """
        Build the chat completion body for a request.

        Thinking mode gets the reasoning preset and the "thinking" flag;
        otherwise the standard preset is used and the flag is omitted.
        """
        payload: dict[str, Any] = {
            "model": request.selected_model,
            "messages": [message.model_dump() for message in request.messages],
        }
        if request.enable_thinking:
            payload.update(REASONING_PRESET)
        else:
            payload.update(STANDARD_PRESET)

        payload["max_tokens"] = self.settings.max_tokens
        payload["stream"] = True

        if request.enable_thinking:
            payload["thinking"] = True

        return payload

    async def open_chat_stream(self, request: ChatRequest) -> UpstreamStream:
        """
        Start a streaming chat completion.

        Returns once the response headers are in, before any body is read.

        Raises:
            UpstreamConnectionError: The server could not be reached
            UpstreamStatusError: The server answered with a non-success status
        """
        server_url = self.resolve_server_url(request.server_url)
        logger.info(
            f"[LLM] chat stream - model: {request.selected_model}, server: {server_url}, "
            f"thinking: {'on' if request.enable_thinking else 'off'}"
        )

        owns_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.connect_timeout, read=None)
        )

        try:
            http_request = client.build_request(
                "POST",
                f"{server_url}/v1/chat/completions",
                json=self.build_payload(request),
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
            )
            response = await client.send(http_request, stream=True)
        except (httpx.TransportError, httpx.InvalidURL) as e:
            if owns_client:
                await client.aclose()
            logger.error(f"Could not reach LM Studio server at {server_url}: {e}")
            raise UpstreamConnectionError(
                f"Could not connect to LM Studio server at {server_url}: {e}"
            ) from e

        if not response.is_success:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            if owns_client:
                await client.aclose()
            logger.error(
                f"LM Studio server error: status={response.status_code} "
                f"reason={response.reason_phrase} body={body[:500]}"
            )
            raise UpstreamStatusError(response.status_code, response.reason_phrase, body)

        return UpstreamStream(response, client if owns_client else None)

    async def list_models(self, server_url: str | None = None) -> ModelList:
        """
        List the models loaded on the inference server.

        Raises:
            UpstreamConnectionError: The server could not be reached
            UpstreamStatusError: The server answered with a non-success status
        """
        server_url = self.resolve_server_url(server_url)
        logger.info(f"[LLM] list models - server: {server_url}")

        client = AsyncOpenAI(
            base_url=f"{server_url}/v1",
            api_key=self.settings.api_key,
            max_retries=0,
            http_client=self._http_client,
        )

        try:
            models = [
                ModelInfo(
                    id=model.id,
                    object=getattr(model, "object", None) or "model",
                    owned_by=getattr(model, "owned_by", None) or "",
                )
                async for model in client.models.list()
            ]
        except openai.APIConnectionError as e:
            logger.error(f"Error fetching model list from {server_url}: {e}")
            raise UpstreamConnectionError(
                f"Could not connect to LM Studio server at {server_url}: {e}"
            ) from e
        except openai.APIStatusError as e:
            logger.error(f"Model list request failed: {e.status_code} {e.message}")
            raise UpstreamStatusError(
                e.status_code, e.response.reason_phrase, e.response.text
            ) from e
        finally:
            if self._http_client is None:
                await client.close()

        logger.info(f"Available models: {[model.id for model in models]}")
        return ModelList(data=models)


# Global instance shared by the routers
lm_studio_service = LMStudioService()
