"""Single-agent OpenAI formatter."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import Msg
from ...model.types import ChatResponse, GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase
from .converter import OpenAIMessageConverter
from .response_parser import OpenAIResponseParser
from .tools_helper import OpenAIToolsHelper


class OpenAIChatFormatter(FormatterBase):
    """Formats messages for the OpenAI chat-completions API.

    Also works for OpenAI-compatible servers; pass ``supports_strict=False``
    for those that reject the ``strict`` flag on tool definitions.
    """

    def __init__(self, supports_strict: bool = True):
        self.converter = OpenAIMessageConverter(
            self.extract_text_content, self.convert_tool_result_to_string
        )
        self.parser = OpenAIResponseParser()
        self.tools_helper = OpenAIToolsHelper(supports_strict=supports_strict)

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        return [self.converter.convert_to_message(m, self.has_media_content(m)) for m in msgs]

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
