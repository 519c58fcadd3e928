"""Gemini chat model over the Generative Language REST API."""

import logging
import os
from typing import Any, AsyncGenerator, Dict, Optional

import httpx

from ..exceptions import ModelError
from ..formatter.base import FormatterBase
from ..formatter.gemini import GeminiChatFormatter
from .base import HttpChatModel
from .types import GenerateOptions

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiChatModel(HttpChatModel):
    """Gemini ``generateContent`` model.

    The model name is part of the URL, so it is removed from the request
    body before sending.
    """

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_GEMINI_URL,
        formatter: Optional[FormatterBase] = None,
        default_options: Optional[GenerateOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ):
        super().__init__(
            model_name,
            formatter or GeminiChatFormatter(),
            base_url=base_url,
            default_options=default_options,
            client=client,
            timeout=timeout,
        )
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")

    def _headers(self, options: Optional[GenerateOptions]) -> Dict[str, str]:
        if not self.api_key:
            raise ModelError("Gemini API key is not set (GEMINI_API_KEY)", self.model_name)
        headers = super()._headers(options)
        headers["x-goog-api-key"] = self.api_key
        return headers

    def _payload(self, request: Dict[str, Any], options: Optional[GenerateOptions]) -> Dict[str, Any]:
        payload = {k: v for k, v in request.items() if k != "model"}
        payload.update(
            FormatterBase.merge_additional(options, self.default_options, "additional_body_params") or {}
        )
        return payload

    async def _call_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{self.model_name}:generateContent"
        response = await self._post_json(
            url, self._payload(request, options), self._headers(options), self._query_params(options)
        )
        if response.get("error"):
            raise ModelError(f"Gemini error: {response['error']}", self.model_name)
        return response

    async def _stream_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> AsyncGenerator[Dict[str, Any], None]:
        url = f"{self.base_url}/models/{self.model_name}:streamGenerateContent"
        params = dict(self._query_params(options) or {}, alt="sse")
        async for event in self._stream_sse(
            url, self._payload(request, options), self._headers(options), params
        ):
            yield event
