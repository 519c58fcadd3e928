"""Tools package - tool registration, schemas and execution."""

from .executor import ToolExecutor
from .toolkit import BASIC_GROUP, RegisteredTool, ToolGroup, Toolkit

__all__ = [
    "BASIC_GROUP",
    "RegisteredTool",
    "ToolGroup",
    "Toolkit",
    "ToolExecutor",
]
