"""Gemini tool declarations, tool config and generation config."""

import logging
from typing import Any, Dict, List, Optional

from ...model.types import GenerateOptions, ToolChoice, ToolSchema

logger = logging.getLogger(__name__)

# GenerateOptions field -> generation_config key
_GENERATION_FIELDS = {
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "max_tokens": "max_output_tokens",
    "seed": "seed",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
}


class GeminiToolsHelper:
    """Builds the tool and config sections of a Gemini request."""

    def convert_tools(self, tools: Optional[List[ToolSchema]]) -> Optional[List[Dict[str, Any]]]:
        if not tools:
            return None
        declarations = []
        for tool in tools:
            declaration: Dict[str, Any] = {"name": tool.name, "description": tool.description}
            if tool.parameters:
                declaration["parameters"] = tool.parameters
            declarations.append(declaration)
            logger.debug(f"Converted tool to Gemini function declaration: {tool.name}")
        return [{"function_declarations": declarations}]

    def convert_tool_choice(self, tool_choice: Optional[ToolChoice]) -> Optional[Dict[str, Any]]:
        if tool_choice is None:
            return None
        if tool_choice.mode == ToolChoice.AUTO:
            config = {"mode": "AUTO"}
        elif tool_choice.mode == ToolChoice.NONE:
            config = {"mode": "NONE"}
        elif tool_choice.mode == ToolChoice.REQUIRED:
            config = {"mode": "ANY"}
        else:
            config = {"mode": "ANY", "allowed_function_names": [tool_choice.tool_name]}
        return {"function_calling_config": config}

    def build_generation_config(
        self,
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> Dict[str, Any]:
        """Call options override defaults field by field."""
        merged = (default_options or GenerateOptions()).merge(options)
        config: Dict[str, Any] = {}
        for field_name, key in _GENERATION_FIELDS.items():
            value = getattr(merged, field_name)
            if value is not None:
                config[key] = value
        if merged.thinking_budget is not None:
            config["thinking_config"] = {
                "include_thoughts": True,
                "thinking_budget": merged.thinking_budget,
            }
        return config
