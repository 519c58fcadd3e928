"""Gemini ``generateContent`` response -> ``ChatResponse``."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import ContentBlock, TextBlock, ThinkingBlock, ToolUseBlock
from ...model.types import ChatResponse, ChatUsage

logger = logging.getLogger(__name__)


def _get(data: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a key in either REST (camelCase) or SDK (snake_case) spelling."""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


class GeminiResponseParser:
    """Parses Gemini responses into thinking, text and tool-use blocks.

    Usage:
        parser = GeminiResponseParser()
        chat_response = parser.parse_response(response_json, start_time)
    """

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        blocks: List[ContentBlock] = []
        finish_reason = None

        candidates = response.get("candidates") or []
        if candidates:
            candidate = candidates[0]
            finish_reason = _get(candidate, "finishReason", "finish_reason")
            parts = (candidate.get("content") or {}).get("parts") or []
            for part in parts:
                blocks.extend(self._parse_part(part))

        usage = self._parse_usage(response, start_time)
        chat_response = ChatResponse(content=blocks, usage=usage, finish_reason=finish_reason)
        response_id = _get(response, "responseId", "response_id")
        if response_id:
            chat_response.id = response_id
        model_version = _get(response, "modelVersion", "model_version")
        if model_version:
            chat_response.metadata["model_version"] = model_version
        return chat_response

    def _parse_part(self, part: Dict[str, Any]) -> List[ContentBlock]:
        if part.get("thought") is True:
            text = part.get("text")
            return [ThinkingBlock(text)] if text else []

        blocks: List[ContentBlock] = []
        if part.get("text"):
            blocks.append(TextBlock(part["text"]))

        function_call = _get(part, "functionCall", "function_call")
        if function_call:
            metadata = {}
            signature = _get(part, "thoughtSignature", "thought_signature")
            if signature:
                metadata[ToolUseBlock.METADATA_THOUGHT_SIGNATURE] = signature
            blocks.append(
                ToolUseBlock(
                    id=function_call.get("id") or f"tool_call_{uuid.uuid4()}",
                    name=function_call.get("name", ""),
                    input=function_call.get("args") or {},
                    metadata=metadata,
                )
            )
        return blocks

    @staticmethod
    def _parse_usage(
        response: Dict[str, Any], start_time: Optional[datetime]
    ) -> Optional[ChatUsage]:
        usage = _get(response, "usageMetadata", "usage_metadata")
        if not usage:
            return None
        elapsed = (datetime.now() - start_time).total_seconds() if start_time else 0.0
        candidates = _get(usage, "candidatesTokenCount", "candidates_token_count", 0) or 0
        thoughts = _get(usage, "thoughtsTokenCount", "thoughts_token_count", 0) or 0
        return ChatUsage(
            input_tokens=_get(usage, "promptTokenCount", "prompt_token_count", 0) or 0,
            output_tokens=candidates - thoughts,
            time=elapsed,
        )
