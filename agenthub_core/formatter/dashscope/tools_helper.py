"""DashScope parameters, tool definitions, tool choice and tool calls."""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from ...message import ToolUseBlock
from ...model.types import GenerateOptions, ToolChoice, ToolSchema
from ..base import FormatterBase

logger = logging.getLogger(__name__)

_SIMPLE_OPTIONS = (
    "temperature",
    "top_p",
    "max_tokens",
    "top_k",
    "seed",
    "frequency_penalty",
    "presence_penalty",
)


class DashScopeToolsHelper:
    """Writes options and tools into a DashScope ``parameters`` dict."""

    def apply_options(
        self,
        params: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        for name in _SIMPLE_OPTIONS:
            value = FormatterBase.get_option(options, default_options, name)
            if value is not None:
                params[name] = value

        thinking_budget = FormatterBase.get_option(options, default_options, "thinking_budget")
        if thinking_budget is not None:
            params["thinking_budget"] = thinking_budget
            params["enable_thinking"] = True

    def convert_tools(self, tools: Optional[List[ToolSchema]]) -> List[Dict[str, Any]]:
        if not tools:
            return []
        result = [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": dict(tool.parameters or {}),
                },
            }
            for tool in tools
        ]
        logger.debug(f"Converted {len(result)} tools to DashScope format")
        return result

    def apply_tools(self, params: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        if tools:
            params["tools"] = self.convert_tools(tools)

    def convert_tool_choice(
        self, tool_choice: Optional[ToolChoice]
    ) -> Optional[Union[str, Dict[str, Any]]]:
        if tool_choice is None:
            return None
        if tool_choice.mode == ToolChoice.AUTO:
            return "auto"
        if tool_choice.mode == ToolChoice.NONE:
            return "none"
        if tool_choice.mode == ToolChoice.REQUIRED:
            logger.warning(
                "ToolChoice.required is not directly supported by DashScope API. Using 'auto' instead."
            )
            return "auto"
        logger.debug(f"Forcing DashScope tool '{tool_choice.tool_name}'")
        return {"type": "function", "function": {"name": tool_choice.tool_name}}

    def apply_tool_choice(self, params: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        choice = self.convert_tool_choice(tool_choice)
        if choice is not None:
            params["tool_choice"] = choice

    def convert_tool_calls(self, tool_uses: List[ToolUseBlock]) -> List[Dict[str, Any]]:
        result = []
        for tool_use in tool_uses or []:
            if tool_use is None:
                logger.warning("Skipping empty ToolUseBlock in convert_tool_calls")
                continue
            try:
                arguments = json.dumps(tool_use.input, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                logger.warning(f"Failed to serialize tool call arguments: {e}")
                arguments = "{}"
            result.append(
                {
                    "id": tool_use.id,
                    "type": "function",
                    "function": {"name": tool_use.name, "arguments": arguments},
                }
            )
        return result

    # -- Request extras (defaults first, call options win) -----------------------

    @staticmethod
    def merge_additional_headers(
        options: Optional[GenerateOptions], default_options: Optional[GenerateOptions]
    ) -> Optional[Dict[str, str]]:
        return FormatterBase.merge_additional(options, default_options, "additional_headers")

    @staticmethod
    def merge_additional_body_params(
        options: Optional[GenerateOptions], default_options: Optional[GenerateOptions]
    ) -> Optional[Dict[str, Any]]:
        return FormatterBase.merge_additional(options, default_options, "additional_body_params")

    @staticmethod
    def merge_additional_query_params(
        options: Optional[GenerateOptions], default_options: Optional[GenerateOptions]
    ) -> Optional[Dict[str, str]]:
        return FormatterBase.merge_additional(options, default_options, "additional_query_params")
