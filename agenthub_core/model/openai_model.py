"""OpenAI chat model backed by the ``openai`` SDK."""

import logging
import os
from typing import Any, AsyncGenerator, Dict, Optional

import openai
from openai import AsyncOpenAI

from ..exceptions import ModelError
from ..formatter.base import FormatterBase
from ..formatter.openai import OpenAIChatFormatter
from .base import ChatModelBase
from .types import GenerateOptions

logger = logging.getLogger(__name__)


def accumulate_tool_call_deltas(chunk: Dict[str, Any], calls: Dict[int, Dict[str, Any]]) -> Dict[str, Any]:
    """Merge a chunk's tool-call deltas into ``calls`` (keyed by index).

    The chunk's deltas are replaced by the calls accumulated so far, so the
    parsed chunk carries the real tool name, id and the arguments received
    up to this point.
    """
    choices = chunk.get("choices") or []
    if not choices:
        return chunk
    delta = choices[0].get("delta") or {}
    deltas = delta.get("tool_calls")
    if not deltas:
        return chunk

    snapshots = []
    for tool_delta in deltas:
        index = tool_delta.get("index")
        if index is None:
            index = len(calls)
        function = tool_delta.get("function") or {}
        call = calls.setdefault(index, {"index": index, "id": None, "function": {"name": "", "arguments": ""}})
        if tool_delta.get("id"):
            call["id"] = tool_delta["id"]
        if function.get("name"):
            call["function"]["name"] = function["name"]
        call["function"]["arguments"] += function.get("arguments") or ""
        if tool_delta.get("thought_signature"):
            call["thought_signature"] = tool_delta["thought_signature"]
        snapshots.append({**call, "function": dict(call["function"])})

    delta["tool_calls"] = snapshots
    return chunk


class OpenAIChatModel(ChatModelBase):
    """Chat-completions model using ``AsyncOpenAI``.

    Works with any OpenAI-compatible endpoint through ``base_url``. SDK
    responses are converted with ``model_dump()`` before parsing, so the
    formatter only ever sees plain dicts.

    Usage:
        model = OpenAIChatModel("gpt-4o-mini")
        response = await model([Msg(name="user", content="Hi")])
    """

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        formatter: Optional[FormatterBase] = None,
        default_options: Optional[GenerateOptions] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(model_name, formatter or OpenAIChatFormatter(), default_options)
        self.client = client or AsyncOpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
        )

    def _split_extras(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        """Move body / header / query extras into the SDK's ``extra_*`` kwargs."""
        kwargs = dict(request)
        body = FormatterBase.merge_additional(options, self.default_options, "additional_body_params")
        if body:
            for key in body:
                kwargs.pop(key, None)
            kwargs["extra_body"] = body
        headers = FormatterBase.merge_additional(options, self.default_options, "additional_headers")
        if headers:
            kwargs["extra_headers"] = headers
        query = FormatterBase.merge_additional(options, self.default_options, "additional_query_params")
        if query:
            kwargs["extra_query"] = query
        return kwargs

    async def _call_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> Dict[str, Any]:
        try:
            completion = await self.client.chat.completions.create(**self._split_extras(request, options))
        except openai.OpenAIError as e:
            raise ModelError(f"OpenAI call failed: {e}", self.model_name) from e
        return completion.model_dump()

    async def _stream_api(
        self, request: Dict[str, Any], options: Optional[GenerateOptions]
    ) -> AsyncGenerator[Dict[str, Any], None]:
        kwargs = self._split_extras(request, options)
        kwargs["stream"] = True
        kwargs["stream_options"] = {"include_usage": True}
        try:
            stream = await self.client.chat.completions.create(**kwargs)
            tool_calls: Dict[int, Dict[str, Any]] = {}
            async for chunk in stream:
                yield accumulate_tool_call_deltas(chunk.model_dump(), tool_calls)
        except openai.OpenAIError as e:
            raise ModelError(f"OpenAI stream failed: {e}", self.model_name) from e
