"""Chat model base class and HTTP plumbing shared by the REST vendors.

A chat model pairs a vendor formatter with a transport:

    request  = formatter.build_request(model_name, msgs, tools, options, defaults)
    response = await self._call_api(request, options)
    result   = formatter.parse_response(response, start_time)
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from ..exceptions import ModelError
from ..formatter.base import FormatterBase
from ..message import Msg
from .types import ChatResponse, ExecutionConfig, GenerateOptions, ToolSchema

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_retry(
    call: Callable[[], Awaitable[T]],
    config: Optional[ExecutionConfig],
    label: str,
    retry_on: tuple = (Exception,),
) -> T:
    """Run ``call`` under the timeout / retry policy in ``config``.

    Backoff doubles from ``initial_backoff`` and is capped at ``max_backoff``.
    The last error is re-raised once attempts are exhausted.
    """
    config = config or ExecutionConfig()
    attempts = max(config.max_attempts or 1, 1)
    backoff = config.initial_backoff

    for attempt in range(1, attempts + 1):
        try:
            if config.timeout is not None:
                return await asyncio.wait_for(call(), timeout=config.timeout)
            return await call()
        except (asyncio.TimeoutError, *retry_on) as e:
            if attempt == attempts:
                raise
            logger.warning(
                f"{label} failed (attempt {attempt}/{attempts}): {e!r}; retrying in {backoff:.1f}s"
            )
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, config.max_backoff)

    raise RuntimeError("unreachable")


class ChatModelBase(ABC):
    """Base for async chat models.

    Subclasses implement ``_call_api`` and, when the vendor streams,
    ``_stream_api``. Both receive the request dict built by the formatter.

    Args:
        model_name: Vendor model identifier
        formatter: Formatter producing the vendor request
        default_options: Options applied when a call does not set them
    """

    supports_streaming = True

    def __init__(
        self,
        model_name: str,
        formatter: FormatterBase,
        default_options: Optional[GenerateOptions] = None,
    ):
        self.model_name = model_name
        self.formatter = formatter
        self.default_options = default_options

    def _build_request(
        self,
        msgs: List[Msg],
        tools: Optional[List[ToolSchema]],
        options: Optional[GenerateOptions],
    ) -> Dict[str, Any]:
        return self.formatter.build_request(
            self.model_name, msgs, tools, options, self.default_options
        )

    def _execution_config(self, options: Optional[GenerateOptions]) -> Optional[ExecutionConfig]:
        return FormatterBase.get_option(options, self.default_options, "execution_config")

    async def __call__(
        self,
        msgs: List[Msg],
        tools: Optional[List[ToolSchema]] = None,
        options: Optional[GenerateOptions] = None,
    ) -> ChatResponse:
        """Send ``msgs`` to the model and return the parsed response.

        Raises:
            ModelError: If the vendor call fails after all retries
        """
        start_time = datetime.now()
        request = self._build_request(msgs, tools, options)
        logger.info(f"Calling {type(self).__name__} ({self.model_name}) with {len(msgs)} msgs")

        response = await run_with_retry(
            lambda: self._call_api(request, options),
            self._execution_config(options),
            f"{self.model_name} call",
            retry_on=(ModelError,),
        )
        result = self.formatter.parse_response(response, start_time)
        if result.usage:
            logger.debug(
                f"{self.model_name} usage: {result.usage.input_tokens} in / "
                f"{result.usage.output_tokens} out"
            )
        return result

    async def stream(
        self,
        msgs: List[Msg],
        tools: Optional[List[ToolSchema]] = None,
        options: Optional[GenerateOptions] = None,
    ) -> AsyncGenerator[ChatResponse, None]:
        """Yield one ``ChatResponse`` per streamed chunk."""
        if not self.supports_streaming:
            raise ModelError(f"{type(self).__name__} does not support streaming", self.model_name)
        start_time = datetime.now()
        request = self._build_request(msgs, tools, options)
        async for chunk in self._stream_api(request, options):
            yield self.formatter.parse_response(chunk, start_time)

    @abstractmethod
    async def _call_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        ...

    async def _stream_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> AsyncGenerator[Dict[str, Any], None]:
        raise NotImplementedError
        yield


class HttpChatModel(ChatModelBase):
    """Chat model talking JSON over HTTP with an ``httpx.AsyncClient``.

    Pass ``client`` to reuse a connection pool (or a mock transport in tests);
    otherwise a client is created per call.
    """

    def __init__(
        self,
        model_name: str,
        formatter: FormatterBase,
        base_url: str,
        default_options: Optional[GenerateOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ):
        super().__init__(model_name, formatter, default_options)
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    def _headers(self, options: Optional[GenerateOptions]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(
            FormatterBase.merge_additional(options, self.default_options, "additional_headers") or {}
        )
        return headers

    def _query_params(self, options: Optional[GenerateOptions]) -> Optional[Dict[str, str]]:
        return FormatterBase.merge_additional(options, self.default_options, "additional_query_params")

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON body.

        Raises:
            ModelError: On transport errors, non-2xx status or invalid JSON
        """
        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise ModelError(
                f"{self.model_name} returned HTTP {e.response.status_code}: {e.response.text[:500]}",
                self.model_name,
            ) from e
        except httpx.HTTPError as e:
            raise ModelError(f"{self.model_name} request failed: {e}", self.model_name) from e
        except json.JSONDecodeError as e:
            raise ModelError(f"{self.model_name} returned invalid JSON: {e}", self.model_name) from e

    async def _stream_lines(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
    ) -> AsyncGenerator[str, None]:
        """POST ``payload`` and yield non-empty response lines."""
        client = self.client or httpx.AsyncClient(timeout=self.timeout)
        try:
            async with client.stream("POST", url, json=payload, headers=headers, params=params) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise ModelError(
                        f"{self.model_name} returned HTTP {response.status_code}: {body[:500]}",
                        self.model_name,
                    )
                async for line in response.aiter_lines():
                    if line.strip():
                        yield line
        except httpx.HTTPError as e:
            raise ModelError(f"{self.model_name} stream failed: {e}", self.model_name) from e
        finally:
            if self.client is None:
                await client.aclose()

    async def _stream_sse(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """Yield the JSON ``data:`` payloads of a server-sent-event stream."""
        async for line in self._stream_lines(url, payload, headers, params):
            if not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if not data or data == "[DONE]":
                continue
            try:
                yield json.loads(data)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping malformed SSE event from {self.model_name}: {e}")
