"""DashScope (Qwen) chat model over the native generation REST API."""

import logging
import os
from typing import Any, AsyncGenerator, Dict, Optional

import httpx

from ..exceptions import ModelError
from ..formatter.dashscope import DashScopeChatFormatter
from ..formatter.dashscope.tools_helper import DashScopeToolsHelper
from .base import HttpChatModel
from .types import GenerateOptions

logger = logging.getLogger(__name__)

DEFAULT_DASHSCOPE_URL = "https://dashscope.aliyuncs.com/api/v1"
_TEXT_PATH = "/services/aigc/text-generation/generation"
_MULTIMODAL_PATH = "/services/aigc/multimodal-generation/generation"


class DashScopeChatModel(HttpChatModel):
    """DashScope generation model.

    Requests whose messages use the part-list content shape go to the
    multimodal endpoint. Streaming uses server-sent events with incremental
    output.
    """

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_DASHSCOPE_URL,
        formatter: Optional[DashScopeChatFormatter] = None,
        default_options: Optional[GenerateOptions] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ):
        super().__init__(
            model_name,
            formatter or DashScopeChatFormatter(),
            base_url=base_url,
            default_options=default_options,
            client=client,
            timeout=timeout,
        )
        self.api_key = api_key or os.environ.get("DASHSCOPE_API_KEY")
        self.helper = DashScopeToolsHelper()

    def _url_for(self, request: Dict[str, Any]) -> str:
        messages = request.get("input", {}).get("messages", [])
        multimodal = any(isinstance(m.get("content"), list) for m in messages)
        return self.base_url + (_MULTIMODAL_PATH if multimodal else _TEXT_PATH)

    def _headers(self, options: Optional[GenerateOptions]) -> Dict[str, str]:
        if not self.api_key:
            raise ModelError("DashScope API key is not set (DASHSCOPE_API_KEY)", self.model_name)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        headers.update(self.helper.merge_additional_headers(options, self.default_options) or {})
        return headers

    async def _call_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        response = await self._post_json(
            self._url_for(request),
            request,
            self._headers(options),
            self.helper.merge_additional_query_params(options, self.default_options),
        )
        if response.get("code"):
            raise ModelError(
                f"DashScope error {response['code']}: {response.get('message', '')}", self.model_name
            )
        return response

    async def _stream_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> AsyncGenerator[Dict[str, Any], None]:
        payload = dict(request)
        payload["parameters"] = dict(request.get("parameters", {}), incremental_output=True)
        headers = dict(self._headers(options), **{"X-DashScope-SSE": "enable"})
        async for event in self._stream_sse(
            self._url_for(payload),
            payload,
            headers,
            self.helper.merge_additional_query_params(options, self.default_options),
        ):
            if event.get("code"):
                raise ModelError(
                    f"DashScope stream error {event['code']}: {event.get('message', '')}",
                    self.model_name,
                )
            yield event
