"""Ollama chat model over the ``/api/chat`` REST endpoint."""

import json
import logging
import os
from typing import Any, AsyncGenerator, Dict, Optional

import httpx

from ..exceptions import ModelError
from ..formatter.base import FormatterBase
from ..formatter.ollama import OllamaChatFormatter
from .base import HttpChatModel
from .types import GenerateOptions

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_HOST = "http://localhost:11434"


class OllamaChatModel(HttpChatModel):
    """Local Ollama model.

    The host comes from ``host``, then ``OLLAMA_HOST``, then localhost.
    Streaming reads newline-delimited JSON chunks.
    """

    def __init__(
        self,
        model_name: str,
        host: Optional[str] = None,
        formatter: Optional[FormatterBase] = None,
        default_options: Optional[GenerateOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 300.0,
    ):
        super().__init__(
            model_name,
            formatter or OllamaChatFormatter(),
            base_url=host or os.environ.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST,
            default_options=default_options,
            client=client,
            timeout=timeout,
        )

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    async def _call_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        payload = dict(request, stream=False)
        return await self._post_json(
            self.chat_url, payload, self._headers(options), self._query_params(options)
        )

    async def _stream_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> AsyncGenerator[Dict[str, Any], None]:
        payload = dict(request, stream=True)
        async for line in self._stream_lines(
            self.chat_url, payload, self._headers(options), self._query_params(options)
        ):
            try:
                chunk = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping malformed Ollama stream line: {e}")
                continue
            if chunk.get("error"):
                raise ModelError(f"Ollama stream error: {chunk['error']}", self.model_name)
            yield chunk
