"""Msg -> Ollama ``/api/chat`` message conversion."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...message import (
    ImageBlock,
    Msg,
    MsgRole,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from ..media import source_to_base64

logger = logging.getLogger(__name__)


def image_to_base64(block: ImageBlock) -> Optional[str]:
    """Base64 payload for an image, or None when it cannot be read."""
    try:
        data, _ = source_to_base64(block.source)
    except (OSError, ValueError, httpx.HTTPError) as e:
        logger.warning(f"Failed to convert image block to Ollama format: {e}")
        return None
    return data


def tool_result_text(block: ToolResultBlock) -> str:
    return "\n".join(o.text for o in block.output if isinstance(o, TextBlock))


def tool_use_to_call(block: ToolUseBlock) -> Dict[str, Any]:
    return {"function": {"name": block.name, "arguments": block.input}}


class OllamaMessageConverter:
    """Converts one ``Msg`` into one Ollama message dict.

    A tool result carried by a tool or system message becomes a ``tool``
    message; everything else keeps its role with text, images and tool calls.
    """

    def convert_message(self, msg: Msg) -> Dict[str, Any]:
        result_block = msg.get_first_content_block(ToolResultBlock)
        if result_block is not None and msg.role in (MsgRole.TOOL, MsgRole.SYSTEM):
            return {
                "role": "tool",
                "tool_call_id": result_block.id,
                "name": result_block.name,
                "content": tool_result_text(result_block),
            }

        texts: List[str] = []
        images: List[str] = []
        tool_calls: List[Dict[str, Any]] = []
        for block in msg.content:
            if isinstance(block, TextBlock):
                texts.append(block.text)
            elif isinstance(block, ImageBlock):
                data = image_to_base64(block)
                if data is not None:
                    images.append(data)
            elif isinstance(block, ToolUseBlock):
                tool_calls.append(tool_use_to_call(block))
            elif isinstance(block, ToolResultBlock):
                texts.extend(o.text for o in block.output if isinstance(o, TextBlock))
            elif isinstance(block, ThinkingBlock):
                logger.debug("Skipping ThinkingBlock when formatting message for Ollama API")
            else:
                logger.warning(
                    f"Unsupported block type {type(block).__name__} in the message, skipped."
                )

        message: Dict[str, Any] = {
            "role": msg.role.value,
            "content": "\n".join(texts) if texts else None,
        }
        if images:
            message["images"] = images
        if tool_calls:
            message["tool_calls"] = tool_calls
        return message
