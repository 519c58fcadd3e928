"""Single-agent DashScope formatter."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ...message import Msg
from ...model.types import ChatResponse, GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase
from .converter import DashScopeMessageConverter
from .response_parser import DashScopeResponseParser
from .tools_helper import DashScopeToolsHelper


class DashScopeChatFormatter(FormatterBase):
    """Formats messages for the DashScope generation API.

    Content is sent as plain strings unless some message carries media, in
    which case every message uses the multimodal part-list shape.

    Requests look like ``{"model", "input": {"messages"}, "parameters"}``;
    the option, tool and tool-choice hooks write into ``parameters``.
    """

    def __init__(self):
        self.tools_helper = DashScopeToolsHelper()
        self.converter = DashScopeMessageConverter(
            self.convert_tool_result_to_string, self.tools_helper
        )
        self.parser = DashScopeResponseParser()

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        use_multimodal = any(self.has_media_content(m) for m in msgs)
        return [self.converter.convert_to_message(m, use_multimodal) for m in msgs]

    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        return self.parser.parse_response(response, start_time)

    @staticmethod
    def _params(request: Dict[str, Any]) -> Dict[str, Any]:
        return request.setdefault("parameters", {})

    def apply_options(
        self,
        request: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        self.tools_helper.apply_options(self._params(request), options, default_options)

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        self.tools_helper.apply_tools(self._params(request), tools)

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        self.tools_helper.apply_tool_choice(self._params(request), tool_choice)

    def build_request(
        self,
        model: str,
        msgs: List[Msg],
        tools: Optional[List[ToolSchema]] = None,
        options: Optional[GenerateOptions] = None,
        default_options: Optional[GenerateOptions] = None,
        stream: bool = False,
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": model,
            "input": {"messages": self.format(msgs)},
            "parameters": {"result_format": "message", "incremental_output": stream},
        }
        self.apply_options(request, options, default_options)
        self.apply_tools(request, tools)
        if tools:
            self.apply_tool_choice(
                request, self.get_option(options, default_options, "tool_choice")
            )

        body_params = self.tools_helper.merge_additional_body_params(options, default_options)
        if body_params:
            request["parameters"].update(body_params)
        return request
