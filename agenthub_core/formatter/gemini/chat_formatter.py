"""Single-agent Gemini formatter."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import Msg
from ...model.types import ChatResponse, GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase
from .converter import GeminiMessageConverter
from .response_parser import GeminiResponseParser
from .tools_helper import GeminiToolsHelper


class GeminiChatFormatter(FormatterBase):
    """Formats a user/assistant conversation for the Gemini API.

    Request sections are written in snake_case: ``contents``, ``tools``,
    ``tool_config`` and ``generation_config``.
    """

    messages_key = "contents"

    def __init__(self):
        self.converter = GeminiMessageConverter()
        self.parser = GeminiResponseParser()
        self.tools_helper = GeminiToolsHelper()

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        return self.converter.convert_messages(msgs)

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
        config = self.tools_helper.build_generation_config(options, default_options)
        if config:
            request["generation_config"] = config

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        converted = self.tools_helper.convert_tools(tools)
        if converted:
            request["tools"] = converted

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        config = self.tools_helper.convert_tool_choice(tool_choice)
        if config:
            request["tool_config"] = config
