"""Ollama ``/api/chat`` response -> ``ChatResponse``."""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import ContentBlock, TextBlock, ThinkingBlock, ToolUseBlock
from ...model.types import ChatResponse, ChatUsage

logger = logging.getLogger(__name__)

_METADATA_KEYS = (
    "model",
    "created_at",
    "total_duration",
    "load_duration",
    "prompt_eval_count",
    "prompt_eval_duration",
    "eval_count",
    "eval_duration",
    "done",
    "done_reason",
)


class OllamaResponseParser:

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        blocks: List[ContentBlock] = []
        message = response.get("message") or {}

        if message.get("thinking"):
            blocks.append(ThinkingBlock(message["thinking"]))
        if message.get("content"):
            blocks.append(TextBlock(message["content"]))
        for tool_call in message.get("tool_calls") or []:
            block = self._parse_tool_call(tool_call)
            if block is not None:
                blocks.append(block)

        usage = None
        if "prompt_eval_count" in response or "eval_count" in response:
            usage = ChatUsage(
                input_tokens=response.get("prompt_eval_count") or 0,
                output_tokens=response.get("eval_count") or 0,
                time=(response.get("total_duration") or 0) / 1e9,
            )

        return ChatResponse(
            content=blocks,
            usage=usage,
            metadata={k: response[k] for k in _METADATA_KEYS if k in response},
            finish_reason=response.get("done_reason"),
        )

    @staticmethod
    def _parse_tool_call(tool_call: Optional[Dict[str, Any]]) -> Optional[ToolUseBlock]:
        if not tool_call:
            return None
        function = tool_call.get("function") or {}
        arguments = function.get("arguments") or {}
        raw = None
        if isinstance(arguments, str):
            raw = arguments
            try:
                arguments = json.loads(arguments) if arguments else {}
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON arguments for tool {function.get('name')}: {raw}")
                arguments = {}
        return ToolUseBlock(
            id=tool_call.get("id") or f"tool_call_{uuid.uuid4()}",
            name=function.get("name", ""),
            input=arguments,
            content=raw,
        )
