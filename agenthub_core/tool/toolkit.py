"""Toolkit - registry of callable tools, organised in activatable groups.

Tool schemas are generated from Python signatures and docstrings with the
openai-agents ``function_schema`` helper, so a plain function is all a tool
needs to be.

Usage:
    toolkit = Toolkit()

    @toolkit.tool
    async def get_weather(city: str) -> str:
        \"\"\"Get the current weather.

        Args:
            city: City name
        \"\"\"
        return f"Sunny in {city}"

    schemas = toolkit.get_json_schemas()
    result = await toolkit.call_tool(ToolUseBlock(id="call_1", name="get_weather", input={"city": "Paris"}))
"""

import asyncio
import copy
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from agents.function_schema import FuncSchema, function_schema
from pydantic import ValidationError

from ..exceptions import ToolError, ToolSuspendedError
from ..message import MEDIA_BLOCKS, TextBlock, ThinkingBlock, ToolResultBlock, ToolUseBlock
from ..model.types import ToolSchema

logger = logging.getLogger(__name__)

BASIC_GROUP = "basic"

_BLOCK_TYPES = (TextBlock, ThinkingBlock) + MEDIA_BLOCKS


@dataclass
class ToolGroup:
    """A named set of tools that can be switched on and off together."""
    name: str
    description: str = ""
    active: bool = False
    notes: Optional[str] = None
    tools: List[str] = field(default_factory=list)


@dataclass
class RegisteredTool:
    """A tool function plus its generated schema."""
    name: str
    function: Callable
    func_schema: FuncSchema
    group: str = BASIC_GROUP
    preset_kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def json_schema(self) -> Dict[str, Any]:
        """Parameters schema with preset kwargs hidden from the model."""
        schema = copy.deepcopy(self.func_schema.params_json_schema)
        properties = schema.get("properties", {})
        for key in self.preset_kwargs:
            properties.pop(key, None)
        if "required" in schema:
            schema["required"] = [r for r in schema["required"] if r not in self.preset_kwargs]
        return schema

    def to_tool_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.func_schema.description or "",
            parameters=self.json_schema,
        )


def _to_tool_result(value: Any) -> ToolResultBlock:
    """Normalise whatever a tool returned into a ``ToolResultBlock``."""
    if isinstance(value, ToolResultBlock):
        return value
    if value is None:
        return ToolResultBlock(output=[])
    if isinstance(value, str):
        return ToolResultBlock.text(value)
    if isinstance(value, _BLOCK_TYPES):
        return ToolResultBlock(output=[value])
    if isinstance(value, list) and value and all(isinstance(v, _BLOCK_TYPES) for v in value):
        return ToolResultBlock(output=list(value))
    return ToolResultBlock.text(json.dumps(value, ensure_ascii=False, default=str))


class Toolkit:
    """Registry of tools and tool groups.

    Tools in the ``basic`` group are always active. Other groups must be
    created with ``create_tool_group`` before tools are added to them, and
    their tools are only exposed while the group is active.
    """

    def __init__(self):
        self.tools: Dict[str, RegisteredTool] = {}
        self.groups: Dict[str, ToolGroup] = {}

    # -- Registration ----------------------------------------------------------

    def register_tool(
        self,
        func: Callable,
        group_name: str = BASIC_GROUP,
        preset_kwargs: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> RegisteredTool:
        """Register ``func`` as a tool.

        Args:
            func: Sync or async callable
            group_name: Group the tool belongs to (must exist unless ``basic``)
            preset_kwargs: Arguments supplied by the application, hidden from the model
            name: Override the tool name (defaults to the function name)
            description: Override the docstring description

        Raises:
            ToolError: If the group does not exist or the name is taken
        """
        if group_name != BASIC_GROUP and group_name not in self.groups:
            raise ToolError(
                f"Tool group '{group_name}' does not exist. Create it with create_tool_group() first."
            )

        schema = function_schema(
            func,
            name_override=name,
            description_override=description,
            strict_json_schema=False,
        )
        if schema.name in self.tools:
            raise ToolError(f"Tool '{schema.name}' is already registered")

        unknown = set(preset_kwargs or {}) - set(schema.params_json_schema.get("properties", {}))
        if unknown:
            raise ToolError(f"Preset kwargs {sorted(unknown)} are not parameters of '{schema.name}'")

        registered = RegisteredTool(
            name=schema.name,
            function=func,
            func_schema=schema,
            group=group_name,
            preset_kwargs=dict(preset_kwargs or {}),
        )
        self.tools[schema.name] = registered
        if group_name in self.groups:
            self.groups[group_name].tools.append(schema.name)

        logger.info(f"Registered tool '{schema.name}' in group '{group_name}'")
        return registered

    def tool(self, func: Optional[Callable] = None, **kwargs):
        """Decorator form of ``register_tool``.

        Usage:
            @toolkit.tool
            def add(a: int, b: int) -> int: ...

            @toolkit.tool(group_name="search")
            async def web_search(query: str) -> str: ...
        """
        def decorator(f: Callable) -> Callable:
            self.register_tool(f, **kwargs)
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def remove_tool(self, name: str) -> None:
        registered = self.tools.pop(name, None)
        if registered is None:
            logger.warning(f"Tool '{name}' not found, nothing to remove")
            return
        group = self.groups.get(registered.group)
        if group is not None and name in group.tools:
            group.tools.remove(name)
        logger.info(f"Removed tool '{name}'")

    def update_tool_preset_kwargs(self, name: str, preset_kwargs: Optional[Dict[str, Any]]) -> None:
        if name not in self.tools:
            raise ToolError(f"Tool '{name}' not found")
        self.tools[name].preset_kwargs = dict(preset_kwargs or {})

    # -- Groups ----------------------------------------------------------------

    def create_tool_group(
        self,
        group_name: str,
        description: str = "",
        active: bool = False,
        notes: Optional[str] = None,
    ) -> ToolGroup:
        if group_name == BASIC_GROUP or group_name in self.groups:
            raise ToolError(f"Tool group '{group_name}' already exists")
        group = ToolGroup(name=group_name, description=description, active=active, notes=notes)
        self.groups[group_name] = group
        logger.debug(f"Created tool group '{group_name}' (active={active})")
        return group

    def update_tool_groups(self, group_names: List[str], active: bool) -> None:
        for group_name in group_names:
            if group_name == BASIC_GROUP:
                logger.warning("The basic tool group is always active and cannot be updated")
                continue
            if group_name not in self.groups:
                logger.warning(f"Tool group '{group_name}' not found, skipping")
                continue
            self.groups[group_name].active = active
        logger.info(f"Set tool groups {group_names} active={active}")

    def remove_tool_groups(self, group_names: List[str]) -> None:
        """Remove groups together with every tool they contain."""
        for group_name in group_names:
            if group_name == BASIC_GROUP:
                raise ToolError("The basic tool group cannot be removed")
            group = self.groups.pop(group_name, None)
            if group is None:
                logger.warning(f"Tool group '{group_name}' not found, skipping")
                continue
            for tool_name in group.tools:
                self.tools.pop(tool_name, None)
            logger.info(f"Removed tool group '{group_name}' and {len(group.tools)} tools")

    def get_active_groups(self) -> List[str]:
        return [name for name, group in self.groups.items() if group.active]

    def set_active_groups(self, group_names: List[str]) -> None:
        for name, group in self.groups.items():
            group.active = name in group_names

    def is_active(self, tool_name: str) -> bool:
        registered = self.tools.get(tool_name)
        if registered is None:
            return False
        if registered.group == BASIC_GROUP:
            return True
        group = self.groups.get(registered.group)
        return group is not None and group.active

    def get_activated_notes(self) -> str:
        """Notes of all active groups, for inclusion in a system prompt."""
        notes = [
            f"## {group.name}\n{group.notes}"
            for group in self.groups.values()
            if group.active and group.notes
        ]
        if not notes:
            return ""
        return "# Activated Tool Groups\n" + "\n\n".join(notes)

    # -- Schemas ---------------------------------------------------------------

    def get_tool_schemas(self) -> List[ToolSchema]:
        return [t.to_tool_schema() for t in self.tools.values() if self.is_active(t.name)]

    def get_json_schemas(self) -> List[Dict[str, Any]]:
        """OpenAI-style function schemas of the active tools."""
        return [
            {
                "type": "function",
                "function": {
                    "name": schema.name,
                    "description": schema.description,
                    "parameters": schema.parameters,
                },
            }
            for schema in self.get_tool_schemas()
        ]

    # -- Invocation ------------------------------------------------------------

    async def call_tool(self, tool_use: ToolUseBlock) -> ToolResultBlock:
        """Run the tool named by ``tool_use``.

        Failures never raise: unknown or inactive tools, invalid arguments and
        exceptions from the tool itself become ``Error:`` results.
        """
        try:
            result = await self.run_tool(tool_use)
        except Exception as e:
            logger.error(f"Tool '{tool_use.name}' failed: {e}", exc_info=True)
            result = ToolResultBlock.error(f"Tool execution failed: {e}")
        return result.with_id_and_name(tool_use.id, tool_use.name)

    async def run_tool(self, tool_use: ToolUseBlock) -> ToolResultBlock:
        """Like ``call_tool`` but exceptions raised by the tool propagate.

        A tool raising ``ToolSuspendedError`` yields a suspended result.
        """
        registered = self.tools.get(tool_use.name)
        if registered is None:
            logger.warning(f"Tool '{tool_use.name}' not found")
            return ToolResultBlock.error(f"Tool not found: {tool_use.name}")
        if not self.is_active(tool_use.name):
            message = f"Unauthorized tool call: '{tool_use.name}' is not available"
            logger.warning(message)
            return ToolResultBlock.error(message)

        arguments = {**registered.preset_kwargs, **(tool_use.input or {})}
        try:
            parsed = registered.func_schema.params_pydantic_model(**arguments)
        except ValidationError as e:
            logger.debug(f"Invalid arguments for tool '{tool_use.name}': {e}")
            return ToolResultBlock.error(
                f"Parameter validation failed for tool '{tool_use.name}': {e}\n"
                "Please correct the parameters and try again."
            )
        args, kwargs = registered.func_schema.to_call_args(parsed)

        logger.info(f"Calling tool '{tool_use.name}'")
        try:
            if inspect.iscoroutinefunction(registered.function):
                value = await registered.function(*args, **kwargs)
            else:
                value = await asyncio.to_thread(registered.function, *args, **kwargs)
        except ToolSuspendedError as e:
            logger.debug(f"Tool '{tool_use.name}' suspended: {e.reason or 'no reason'}")
            return ToolResultBlock.suspended(tool_use, e.reason)

        return _to_tool_result(value)
