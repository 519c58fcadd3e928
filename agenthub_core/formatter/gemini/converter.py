"""Msg -> Gemini ``contents`` conversion."""

import base64
import logging
from typing import Any, Dict, List

import httpx

from ...message import (
    MEDIA_BLOCKS,
    ContentBlock,
    Msg,
    MsgRole,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from ..base import convert_tool_result_to_string
from ..media import source_to_base64

logger = logging.getLogger(__name__)


def convert_role(role: MsgRole) -> str:
    """Gemini only knows ``model`` and ``user``."""
    return "model" if role == MsgRole.ASSISTANT else "user"


def media_to_inline_part(block: ContentBlock) -> Dict[str, Any]:
    """Inline a media block as ``{"inline_data": {"data", "mime_type"}}``.

    URL sources are read from disk or downloaded; the MIME type comes from the
    file extension.
    """
    data, mime_type = source_to_base64(block.source)
    return {"inline_data": {"data": data, "mime_type": mime_type}}


def tool_use_to_part(block: ToolUseBlock) -> Dict[str, Any]:
    part: Dict[str, Any] = {
        "function_call": {"id": block.id, "name": block.name, "args": block.input},
    }
    signature = block.metadata.get(ToolUseBlock.METADATA_THOUGHT_SIGNATURE)
    if isinstance(signature, (bytes, bytearray)):
        part["thought_signature"] = base64.b64encode(signature).decode("ascii")
    elif isinstance(signature, str) and signature:
        part["thought_signature"] = signature
    return part


def tool_result_to_content(block: ToolResultBlock) -> Dict[str, Any]:
    return {
        "role": "user",
        "parts": [
            {
                "function_response": {
                    "id": block.id,
                    "name": block.name,
                    "response": {"output": convert_tool_result_to_string(block.output)},
                }
            }
        ],
    }


class GeminiMessageConverter:
    """Converts messages to Gemini ``Content`` dicts.

    Tool results are emitted as their own user content, in place, so each
    ``function_call`` is followed by its ``function_response``.

    Usage:
        contents = GeminiMessageConverter().convert_messages(msgs)
    """

    def convert_messages(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []

        for msg in msgs:
            parts: List[Dict[str, Any]] = []

            for block in msg.content:
                if isinstance(block, TextBlock):
                    parts.append({"text": block.text})
                elif isinstance(block, ToolUseBlock):
                    parts.append(tool_use_to_part(block))
                elif isinstance(block, ToolResultBlock):
                    result.append(tool_result_to_content(block))
                elif isinstance(block, MEDIA_BLOCKS):
                    parts.append(self.convert_media(block))
                elif isinstance(block, ThinkingBlock):
                    logger.debug("Skipping ThinkingBlock when formatting message for Gemini API")
                else:
                    logger.warning(
                        f"Unsupported block type: {type(block).__name__} in the message, skipped."
                    )

            if parts:
                result.append({"role": convert_role(msg.role), "parts": parts})

        return result

    @staticmethod
    def convert_media(block: ContentBlock) -> Dict[str, Any]:
        try:
            return media_to_inline_part(block)
        except (OSError, ValueError, httpx.HTTPError) as e:
            label = type(block).__name__.replace("Block", "")
            logger.warning(f"Failed to inline {label} for Gemini: {e}")
            return {"text": f"[{label} - processing failed: {e}]"}
