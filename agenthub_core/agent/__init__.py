"""Agents package."""

from .base import AgentBase, ChatAgent

__all__ = ["AgentBase", "ChatAgent"]
