"""Single-agent Ollama formatter."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import (
    ImageBlock,
    Msg,
    MsgRole,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    URLSource,
)
from ...model.types import ChatResponse, GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase
from .converter import OllamaMessageConverter, image_to_base64, tool_result_text, tool_use_to_call
from .response_parser import OllamaResponseParser
from .tools_helper import OllamaToolsHelper

logger = logging.getLogger(__name__)


def image_reference(block: ImageBlock) -> str:
    if isinstance(block.source, URLSource):
        return block.source.url
    return f"inline {block.source.media_type} data"


def promotion_header(tool_name: Optional[str]) -> str:
    return (
        "<system-info>The following are the image contents from the tool "
        f"result of '{tool_name}':"
    )


class OllamaChatFormatter(FormatterBase):
    """Formats a conversation for Ollama's ``/api/chat`` endpoint.

    Ollama tool messages cannot carry images. With
    ``promote_tool_result_images`` the images of a tool result are re-sent in
    a follow-up user message.
    """

    def __init__(self, promote_tool_result_images: bool = False):
        self.promote_tool_result_images = promote_tool_result_images
        self.converter = OllamaMessageConverter()
        self.parser = OllamaResponseParser()
        self.tools_helper = OllamaToolsHelper()

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        for msg in msgs:
            self._process_message(msg, result)
        return result

    def _process_message(self, msg: Msg, result: List[Dict[str, Any]]) -> None:
        texts: List[str] = []
        images: List[str] = []
        tool_calls: List[Dict[str, Any]] = []

        for block in msg.content:
            if isinstance(block, TextBlock):
                texts.append(block.text)
            elif isinstance(block, ToolUseBlock):
                tool_calls.append(tool_use_to_call(block))
            elif isinstance(block, ToolResultBlock):
                self._process_tool_result(block, result)
            elif isinstance(block, ImageBlock):
                data = image_to_base64(block)
                if data is not None:
                    images.append(data)
            else:
                logger.warning(
                    f"Unsupported block type {type(block).__name__} in the message, skipped."
                )

        if not (texts or images or tool_calls):
            return

        message: Dict[str, Any] = {
            "role": msg.role.value,
            "content": "\n".join(texts) if texts else None,
        }
        if images:
            message["images"] = images
        if tool_calls:
            message["tool_calls"] = tool_calls
        result.append(message)

    def _process_tool_result(self, block: ToolResultBlock, result: List[Dict[str, Any]]) -> None:
        result.append(
            {
                "role": "tool",
                "tool_call_id": block.id,
                "name": block.name,
                "content": tool_result_text(block),
            }
        )

        images = [o for o in block.output if isinstance(o, ImageBlock)]
        if self.promote_tool_result_images and images:
            content: List[Any] = [TextBlock(promotion_header(block.name))]
            for image in images:
                content.append(TextBlock(f"\n- The image from '{image_reference(image)}': "))
                content.append(image)
            content.append(TextBlock("</system-info>"))
            promoted = Msg(name="user", content=content, role=MsgRole.USER)
            result.append(self.converter.convert_message(promoted))

    # -- Vendor hooks ------------------------------------------------------------

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        return self.parser.parse_response(response, start_time)

    def apply_options(
        self,
        request: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        self.tools_helper.apply_options(request, options, default_options)

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        self.tools_helper.apply_tools(request, tools)

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        self.tools_helper.apply_tool_choice(request, tool_choice)
