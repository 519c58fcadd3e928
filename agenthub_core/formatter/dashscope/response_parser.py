"""DashScope generation response -> ``ChatResponse``."""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import ContentBlock, TextBlock, ThinkingBlock, ToolUseBlock
from ...model.types import ChatResponse, ChatUsage

logger = logging.getLogger(__name__)


def _content_text(content: Any) -> Optional[str]:
    if content is None or isinstance(content, str):
        return content
    # Multimodal models return a list of {"text": ...} parts.
    return "".join(part.get("text", "") for part in content if isinstance(part, dict))


class DashScopeResponseParser:
    """Parses ``result_format="message"`` responses.

    Blocks are emitted as thinking (``reasoning_content``), then text, then
    tool calls.
    """

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        blocks: List[ContentBlock] = []
        finish_reason = None

        output = response.get("output") or {}
        choices = output.get("choices") or []
        if choices:
            choice = choices[0]
            finish_reason = choice.get("finish_reason")
            message = choice.get("message") or {}

            if message.get("reasoning_content"):
                blocks.append(ThinkingBlock(message["reasoning_content"]))

            text = _content_text(message.get("content"))
            if text:
                blocks.append(TextBlock(text))

            for tool_call in message.get("tool_calls") or []:
                block = self._parse_tool_call(tool_call)
                if block is not None:
                    blocks.append(block)
        elif output.get("text"):
            blocks.append(TextBlock(output["text"]))
            finish_reason = output.get("finish_reason")

        usage = None
        if response.get("usage"):
            elapsed = (datetime.now() - start_time).total_seconds() if start_time else 0.0
            usage = ChatUsage(
                input_tokens=response["usage"].get("input_tokens") or 0,
                output_tokens=response["usage"].get("output_tokens") or 0,
                time=elapsed,
            )

        chat_response = ChatResponse(content=blocks, usage=usage, finish_reason=finish_reason)
        if response.get("request_id"):
            chat_response.id = response["request_id"]
        return chat_response

    @staticmethod
    def _parse_tool_call(tool_call: Dict[str, Any]) -> Optional[ToolUseBlock]:
        function = tool_call.get("function") or {}
        name = function.get("name")
        if not name:
            logger.warning("DashScope tool call has no name, skipping")
            return None
        arguments = function.get("arguments") or ""
        try:
            parsed = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse DashScope tool call arguments: {e}")
            parsed = {}
        return ToolUseBlock(
            id=tool_call.get("id") or f"tool_call_{int(time.time() * 1000)}",
            name=name,
            input=parsed if isinstance(parsed, dict) else {},
            content=arguments,
        )
