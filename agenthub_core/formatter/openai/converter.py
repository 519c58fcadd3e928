"""Msg -> OpenAI chat-completions message conversion."""

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from ...message import (
    AudioBlock,
    Base64Source,
    ContentBlock,
    ImageBlock,
    MEDIA_BLOCKS,
    Msg,
    MsgRole,
    Source,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    URLSource,
    VideoBlock,
)
from ..base import FormatterBase, convert_tool_result_to_string
from ..media import infer_audio_format, is_local_file, source_to_data_url, url_to_base64_data_url

logger = logging.getLogger(__name__)

MEDIA_ERRORS = (OSError, ValueError, httpx.HTTPError)


def source_to_url(source: Source) -> str:
    """Remote URLs pass through; local files and base64 become data URLs."""
    if isinstance(source, URLSource):
        if is_local_file(source.url):
            return url_to_base64_data_url(source.url)
        return source.url
    return source_to_data_url(source)


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def image_part(source: Source) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": source_to_url(source)}}


def video_part(source: Source) -> Dict[str, Any]:
    return {"type": "video_url", "video_url": {"url": source_to_url(source)}}


def audio_part(source: Source) -> Dict[str, Any]:
    """``input_audio`` for base64 audio; URL audio is referenced as text."""
    if isinstance(source, Base64Source):
        if not source.data:
            logger.warning("Base64 audio has empty data, using placeholder")
            return text_part("[Audio - data missing]")
        return {
            "type": "input_audio",
            "input_audio": {"data": source.data, "format": infer_audio_format(source.media_type)},
        }
    logger.warning("URL-based audio not directly supported, using text reference")
    return text_part(f"[Audio URL: {source.url}]")


class OpenAIMessageConverter:
    """Converts one ``Msg`` into one OpenAI message dict.

    Usage:
        converter = OpenAIMessageConverter()
        message = converter.convert_to_message(msg, has_media=False)
    """

    def __init__(
        self,
        text_extractor: Callable[[Msg], str] = FormatterBase.extract_text_content,
        tool_result_converter: Callable[[List[ContentBlock]], str] = convert_tool_result_to_string,
    ):
        self.text_extractor = text_extractor
        self.tool_result_converter = tool_result_converter

    def convert_to_message(self, msg: Msg, has_media: bool = False) -> Dict[str, Any]:
        if msg.role == MsgRole.SYSTEM and msg.has_content_blocks(ToolResultBlock):
            return self._convert_tool_message(msg)
        if msg.role == MsgRole.SYSTEM:
            return {"role": "system", "content": self.text_extractor(msg) or ""}
        if msg.role == MsgRole.USER:
            return self._convert_user_message(msg, has_media)
        if msg.role == MsgRole.ASSISTANT:
            return self._convert_assistant_message(msg)
        return self._convert_tool_message(msg)

    def convert_content_blocks(self, blocks: List[ContentBlock]) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        for block in blocks:
            if isinstance(block, TextBlock):
                parts.append(text_part(block.text))
            elif isinstance(block, ImageBlock):
                parts.append(self._safe_media_part(block, image_part, "Image"))
            elif isinstance(block, AudioBlock):
                parts.append(self._safe_media_part(block, audio_part, "Audio"))
            elif isinstance(block, VideoBlock):
                parts.append(self._safe_media_part(block, video_part, "Video"))
            elif isinstance(block, ThinkingBlock):
                logger.debug("Skipping ThinkingBlock when formatting for OpenAI")
            else:
                logger.warning(f"{type(block).__name__} is not supported in user messages")
        return parts

    @staticmethod
    def _safe_media_part(block: ContentBlock, build: Callable, label: str) -> Dict[str, Any]:
        try:
            return build(block.source)
        except MEDIA_ERRORS as e:
            logger.warning(f"Failed to process {label}Block: {e}")
            return text_part(f"[{label} - processing failed: {e}]")

    def _convert_user_message(self, msg: Msg, has_media: bool) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "user"}
        if msg.name is not None:
            message["name"] = msg.name

        if not has_media and len(msg.content) == 1 and isinstance(msg.content[0], TextBlock):
            message["content"] = msg.content[0].text
            return message

        parts = self.convert_content_blocks(msg.content)
        message["content"] = parts if parts else ""
        return message

    def _convert_assistant_message(self, msg: Msg) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "assistant"}

        text = self.text_extractor(msg)
        if text:
            message["content"] = text

        thinking = msg.get_first_content_block(ThinkingBlock)
        if thinking is not None and thinking.thinking:
            message["reasoning_content"] = thinking.thinking

        if msg.name is not None:
            message["name"] = msg.name

        tool_uses = msg.get_content_blocks(ToolUseBlock)
        if tool_uses:
            fallback_signature = self._first_signature(tool_uses)
            tool_calls = []
            for tool_use in tool_uses:
                if not tool_use.id or not tool_use.name:
                    logger.warning("ToolUseBlock has empty id or name, skipping")
                    continue
                function: Dict[str, Any] = {
                    "name": tool_use.name,
                    "arguments": tool_use.content or self._dump_arguments(tool_use.input),
                }
                signature = tool_use.metadata.get(ToolUseBlock.METADATA_THOUGHT_SIGNATURE)
                if not isinstance(signature, str):
                    signature = fallback_signature
                if signature is not None:
                    function["thought_signature"] = signature
                tool_calls.append({"id": tool_use.id, "type": "function", "function": function})
                logger.debug(
                    f"Formatted assistant tool call: id={tool_use.id}, name={tool_use.name}, "
                    f"hasSignature={signature is not None}"
                )
            message["tool_calls"] = tool_calls

        return message

    @staticmethod
    def _first_signature(tool_uses: List[ToolUseBlock]) -> Optional[str]:
        # Parallel calls may only carry the signature on the first call.
        for tool_use in tool_uses:
            signature = tool_use.metadata.get(ToolUseBlock.METADATA_THOUGHT_SIGNATURE)
            if isinstance(signature, str) and signature:
                return signature
        return None

    @staticmethod
    def _dump_arguments(arguments: Dict[str, Any]) -> str:
        try:
            return json.dumps(arguments, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to serialize tool call arguments: {e}")
            return "{}"

    def _convert_tool_message(self, msg: Msg) -> Dict[str, Any]:
        result = msg.get_first_content_block(ToolResultBlock)
        message: Dict[str, Any] = {
            "role": "tool",
            "tool_call_id": result.id if result is not None and result.id else self._fallback_id(),
        }
        if result is not None and any(isinstance(o, MEDIA_BLOCKS) for o in result.output):
            message["content"] = self.convert_content_blocks(result.output)
        elif result is not None:
            message["content"] = self.tool_result_converter(result.output) or ""
        else:
            message["content"] = self.text_extractor(msg) or ""
        return message

    @staticmethod
    def _fallback_id() -> str:
        return f"tool_call_{int(time.time() * 1000)}"
