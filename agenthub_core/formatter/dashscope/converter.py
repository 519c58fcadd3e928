"""Msg -> DashScope generation message conversion.

DashScope has two content shapes: a plain string for text-only models and a
list of ``{"text"}`` / ``{"image"}`` / ``{"audio"}`` / ``{"video"}`` parts for
multimodal models. Media URLs are passed by reference: remote URLs as-is,
local files as ``file://`` URLs and base64 data as data URLs.
"""

import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional

from ...message import (
    AudioBlock,
    Base64Source,
    ContentBlock,
    ImageBlock,
    Msg,
    MsgRole,
    Source,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    VideoBlock,
)
from ..base import convert_tool_result_to_string
from ..media import is_local_file, to_file_protocol_url
from .tools_helper import DashScopeToolsHelper

logger = logging.getLogger(__name__)

_PART_KEYS = {ImageBlock: "image", AudioBlock: "audio", VideoBlock: "video"}


def source_to_media_url(source: Source) -> str:
    if isinstance(source, Base64Source):
        return f"data:{source.media_type};base64,{source.data}"
    if is_local_file(source.url):
        if not os.path.exists(source.url):
            raise FileNotFoundError(f"File not found: {source.url}")
        return to_file_protocol_url(source.url)
    return source.url


def media_to_part(block: ContentBlock) -> Dict[str, Any]:
    return {_PART_KEYS[type(block)]: source_to_media_url(block.source)}


def text_only(msg: Msg) -> str:
    """Text blocks only, joined with newlines."""
    return "\n".join(b.text for b in msg.content if isinstance(b, TextBlock))


def fallback_tool_call_id() -> str:
    return f"tool_call_{int(time.time() * 1000)}"


class DashScopeMessageConverter:

    def __init__(
        self,
        tool_result_converter: Callable[[List[ContentBlock]], str] = convert_tool_result_to_string,
        tools_helper: Optional[DashScopeToolsHelper] = None,
    ):
        self.tool_result_converter = tool_result_converter
        self.tools_helper = tools_helper or DashScopeToolsHelper()

    def convert_to_message(self, msg: Msg, use_multimodal: bool = False) -> Dict[str, Any]:
        if use_multimodal:
            return self._convert_multimodal(msg)
        return self._convert_simple(msg)

    # -- Text-only form --------------------------------------------------------

    def _convert_simple(self, msg: Msg) -> Dict[str, Any]:
        result = msg.get_first_content_block(ToolResultBlock)
        if result is not None and msg.role in (MsgRole.TOOL, MsgRole.SYSTEM):
            return {
                "role": "tool",
                "tool_call_id": result.id,
                "name": result.name,
                "content": self.tool_result_converter(result.output),
            }

        message: Dict[str, Any] = {"role": msg.role.value}
        tool_uses = msg.get_content_blocks(ToolUseBlock)
        if msg.role == MsgRole.ASSISTANT and tool_uses:
            message["content"] = text_only(msg) or None
            message["tool_calls"] = self.tools_helper.convert_tool_calls(tool_uses)
        else:
            message["content"] = text_only(msg)
        return message

    # -- Multimodal form -------------------------------------------------------

    def convert_content_blocks(self, blocks: List[ContentBlock]) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        for block in blocks:
            if isinstance(block, TextBlock):
                parts.append({"text": block.text})
            elif type(block) in _PART_KEYS:
                parts.append(self.safe_media_part(block))
            elif isinstance(block, ThinkingBlock):
                logger.debug("Skipping ThinkingBlock when formatting for DashScope")
            elif isinstance(block, ToolResultBlock):
                text = self.tool_result_converter(block.output)
                if text:
                    parts.append({"text": text})
        return parts

    @staticmethod
    def safe_media_part(block: ContentBlock) -> Dict[str, Any]:
        label = _PART_KEYS[type(block)].capitalize()
        try:
            return media_to_part(block)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to process {label}Block: {e}")
            return {"text": f"[{label} - processing failed: {e}]"}

    def _convert_multimodal(self, msg: Msg) -> Dict[str, Any]:
        if msg.role == MsgRole.TOOL:
            return self._convert_tool_role(msg)

        parts = self.convert_content_blocks(msg.content) or [{"text": ""}]
        message: Dict[str, Any] = {"role": msg.role.value, "content": parts}
        tool_uses = msg.get_content_blocks(ToolUseBlock)
        if msg.role == MsgRole.ASSISTANT and tool_uses:
            message["tool_calls"] = self.tools_helper.convert_tool_calls(tool_uses)
        return message

    def _convert_tool_role(self, msg: Msg) -> Dict[str, Any]:
        result = msg.get_first_content_block(ToolResultBlock)
        if result is None:
            return {"role": "tool", "content": [{"text": text_only(msg)}]}
        return {
            "role": "tool",
            "tool_call_id": result.id,
            "name": result.name,
            "content": [{"text": self.tool_result_converter(result.output)}],
        }
