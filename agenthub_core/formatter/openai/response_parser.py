"""OpenAI chat-completions response -> ``ChatResponse``.

Handles both full completions (``choices[0].message``) and streaming chunks
(``choices[0].delta``). Responses are plain dicts, e.g. the
``model_dump()`` of an openai SDK object.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...exceptions import FormatterError
from ...message import ContentBlock, TextBlock, ThinkingBlock, ToolUseBlock
from ...model.types import ChatResponse, ChatUsage

logger = logging.getLogger(__name__)

# Name given to streamed argument fragments that arrive without a tool name.
FRAGMENT_PLACEHOLDER = "__fragment__"


def _elapsed(start_time: Optional[datetime]) -> float:
    return (datetime.now() - start_time).total_seconds() if start_time else 0.0


def _encrypted_signatures(details: Optional[List[Dict[str, Any]]]) -> Dict[Any, str]:
    """Map tool-call id (and stream index) -> encrypted reasoning signature."""
    signatures: Dict[Any, str] = {}
    for detail in details or []:
        if detail.get("type") == "reasoning.encrypted" and detail.get("data"):
            if detail.get("id") is not None:
                signatures[detail["id"]] = detail["data"]
            if detail.get("index") is not None:
                signatures[detail["index"]] = detail["data"]
    return signatures


def _content_as_string(content: Any) -> Optional[str]:
    if content is None or isinstance(content, str):
        return content
    # Some compatible servers return content as a list of text parts.
    return "".join(part.get("text", "") for part in content if isinstance(part, dict))


class OpenAIResponseParser:

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        if response.get("object") == "chat.completion.chunk" or response.get("error"):
            return self.parse_chunk(response, start_time)
        return self.parse_completion(response, start_time)

    def parse_completion(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        blocks: List[ContentBlock] = []
        finish_reason = None

        choices = response.get("choices") or []
        if choices:
            choice = choices[0]
            finish_reason = choice.get("finish_reason")
            message = choice.get("message") or {}

            if message.get("reasoning_content"):
                blocks.append(ThinkingBlock(message["reasoning_content"]))

            text = _content_as_string(message.get("content"))
            if text:
                blocks.append(TextBlock(text))

            signatures = _encrypted_signatures(message.get("reasoning_details"))
            for tool_call in message.get("tool_calls") or []:
                block = self._parse_tool_call(tool_call, signatures)
                if block is not None:
                    blocks.append(block)

        chat_response = ChatResponse(
            content=blocks,
            usage=self._parse_usage(response, start_time),
            finish_reason=finish_reason,
        )
        if response.get("id"):
            chat_response.id = response["id"]
        return chat_response

    def _parse_tool_call(
        self, tool_call: Dict[str, Any], signatures: Dict[Any, str]
    ) -> Optional[ToolUseBlock]:
        function = tool_call.get("function") or {}
        name = function.get("name")
        if not name:
            logger.warning("Tool call has no name, skipping")
            return None

        tool_call_id = tool_call.get("id") or f"tool_call_{int(time.time() * 1000)}"
        arguments = function.get("arguments") or ""
        try:
            parsed = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse tool call arguments due to JSON error: {e}")
            return None

        metadata = {}
        signature = (
            tool_call.get("thought_signature")
            or function.get("thought_signature")
            or signatures.get(tool_call.get("id"))
        )
        if signature:
            metadata[ToolUseBlock.METADATA_THOUGHT_SIGNATURE] = signature

        return ToolUseBlock(
            id=tool_call_id,
            name=name,
            input=parsed if isinstance(parsed, dict) else {},
            content=arguments,
            metadata=metadata,
        )

    def parse_chunk(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        """Parse one streaming chunk.

        Raises:
            FormatterError: If the chunk carries an error payload
        """
        error = response.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise FormatterError(
                f"OpenAI API error in streaming response: {message or 'Unknown error in streaming response'}"
            )

        blocks: List[ContentBlock] = []
        finish_reason = None

        choices = response.get("choices") or []
        if choices:
            choice = choices[0]
            finish_reason = choice.get("finish_reason")
            delta = choice.get("delta") or {}

            if delta.get("reasoning_content"):
                blocks.append(ThinkingBlock(delta["reasoning_content"]))

            text = _content_as_string(delta.get("content"))
            if text:
                blocks.append(TextBlock(text))

            signatures = _encrypted_signatures(delta.get("reasoning_details"))
            for tool_call in delta.get("tool_calls") or []:
                block = self._parse_tool_call_chunk(tool_call, signatures)
                if block is not None:
                    blocks.append(block)

        chat_response = ChatResponse(
            content=blocks,
            usage=self._parse_usage(response, start_time),
            finish_reason=finish_reason,
        )
        if response.get("id"):
            chat_response.id = response["id"]
        return chat_response

    @staticmethod
    def _parse_tool_call_chunk(
        tool_call: Dict[str, Any], signatures: Dict[Any, str]
    ) -> Optional[ToolUseBlock]:
        function = tool_call.get("function") or {}
        name = function.get("name") or ""
        arguments = function.get("arguments") or ""
        tool_call_id = tool_call.get("id")
        signature = (
            tool_call.get("thought_signature")
            or function.get("thought_signature")
            or signatures.get(tool_call_id)
            or signatures.get(tool_call.get("index"))
        )
        if not name and not arguments and not signature:
            return None

        parsed: Dict[str, Any] = {}
        stripped = arguments.strip()
        if stripped.startswith("{") and stripped.endswith("}"):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                logger.debug(f"Partial arguments in streaming (expected): {arguments[:50]}")

        metadata = {ToolUseBlock.METADATA_THOUGHT_SIGNATURE: signature} if signature else {}
        return ToolUseBlock(
            id=tool_call_id or f"streaming_{int(time.time() * 1000)}",
            name=name or FRAGMENT_PLACEHOLDER,
            input=parsed if isinstance(parsed, dict) else {},
            content=arguments,
            metadata=metadata,
        )

    @staticmethod
    def _parse_usage(response: Dict[str, Any], start_time: Optional[datetime]) -> Optional[ChatUsage]:
        usage = response.get("usage")
        if not usage:
            return None
        return ChatUsage(
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
            time=_elapsed(start_time),
        )
