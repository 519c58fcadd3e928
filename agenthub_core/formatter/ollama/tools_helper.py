"""Ollama options, tool definitions and tool choice."""

import logging
from typing import Any, Dict, List, Optional, Union

from ...model.types import GenerateOptions, ToolChoice, ToolSchema

logger = logging.getLogger(__name__)

# GenerateOptions field -> Ollama ``options`` key
_OPTION_FIELDS = {
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "max_tokens": "num_predict",
    "seed": "seed",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
}


class OllamaToolsHelper:

    def apply_options(
        self,
        request: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        """Write sampling options into ``request["options"]``.

        The ``options`` map is always present, even when nothing is set.
        """
        merged = (default_options or GenerateOptions()).merge(options)
        ollama_options = request.setdefault("options", {})
        for field_name, key in _OPTION_FIELDS.items():
            value = getattr(merged, field_name)
            if value is not None:
                ollama_options[key] = value
        if merged.thinking_budget is not None:
            request["think"] = merged.thinking_budget > 0
        if merged.additional_body_params:
            request.update(merged.additional_body_params)

    def convert_tools(self, tools: Optional[List[ToolSchema]]) -> Optional[List[Dict[str, Any]]]:
        if not tools:
            return None
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        converted = self.convert_tools(tools)
        if converted:
            request["tools"] = converted

    def convert_tool_choice(
        self, tool_choice: Optional[ToolChoice]
    ) -> Optional[Union[str, Dict[str, Any]]]:
        if tool_choice is None:
            return None
        if tool_choice.mode == ToolChoice.NONE:
            return "none"
        if tool_choice.mode == ToolChoice.REQUIRED:
            logger.warning("Ollama does not support tool_choice='required', falling back to 'auto'")
            return "auto"
        if tool_choice.mode == ToolChoice.SPECIFIC:
            return {"type": "function", "function": {"name": tool_choice.tool_name}}
        return "auto"

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        converted = self.convert_tool_choice(tool_choice)
        if converted is not None:
            request["tool_choice"] = converted
