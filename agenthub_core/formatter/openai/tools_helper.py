"""OpenAI request options, tool definitions and tool choice."""

import logging
from typing import Any, Dict, List, Optional, Union

from ...model.types import GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase

logger = logging.getLogger(__name__)

_SIMPLE_OPTIONS = (
    "temperature",
    "reasoning_effort",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
)


class OpenAIToolsHelper:
    """Writes options, tools and tool choice into an OpenAI request dict.

    Usage:
        helper = OpenAIToolsHelper()
        helper.apply_options(request, GenerateOptions(temperature=0.2), None)
        helper.apply_tools(request, [ToolSchema(name="search")])
    """

    def __init__(self, supports_strict: bool = True):
        self.supports_strict = supports_strict

    def apply_options(
        self,
        request: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        get = FormatterBase.get_option
        for name in _SIMPLE_OPTIONS:
            value = get(options, default_options, name)
            if value is not None:
                request[name] = value

        max_tokens = get(options, default_options, "max_tokens")
        if max_tokens is not None:
            request["max_completion_tokens"] = max_tokens
            request["max_tokens"] = max_tokens

        seed = get(options, default_options, "seed")
        if seed is not None:
            request["seed"] = int(seed)

        # Call options are applied last so their params win.
        for opts in (default_options, options):
            if opts is not None and opts.additional_body_params:
                request.update(opts.additional_body_params)
                logger.debug(
                    f"Applied {len(opts.additional_body_params)} additional body params to OpenAI request"
                )

    def convert_tools(self, tools: Optional[List[ToolSchema]]) -> List[Dict[str, Any]]:
        converted = []
        for tool in tools or []:
            function: Dict[str, Any] = {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            }
            if self.supports_strict and tool.strict is not None:
                function["strict"] = tool.strict
            converted.append({"type": "function", "function": function})
            logger.debug(f"Converted tool to OpenAI format: {tool.name} (strict: {tool.strict})")
        return converted

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        converted = self.convert_tools(tools)
        if converted:
            request["tools"] = converted

    @staticmethod
    def convert_tool_choice(tool_choice: Optional[ToolChoice]) -> Union[str, Dict[str, Any]]:
        if tool_choice is None or tool_choice.mode == ToolChoice.AUTO:
            return "auto"
        if tool_choice.mode == ToolChoice.NONE:
            return "none"
        if tool_choice.mode == ToolChoice.REQUIRED:
            return "required"
        return {"type": "function", "function": {"name": tool_choice.tool_name}}

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        """Only applied when the request carries tools."""
        if not request.get("tools"):
            return
        request["tool_choice"] = self.convert_tool_choice(tool_choice)
