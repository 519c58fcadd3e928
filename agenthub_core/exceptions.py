"""Exception types raised by agenthub_core."""

from dataclasses import dataclass
from typing import List, Optional


class AgentHubError(Exception):
    """Base class for all agenthub_core errors."""


class FormatterError(AgentHubError):
    """A vendor payload could not be formatted or parsed."""


class ModelError(AgentHubError):
    """A chat model call failed."""

    def __init__(self, message: str, model_name: Optional[str] = None):
        super().__init__(message)
        self.model_name = model_name


class ToolError(AgentHubError):
    """A tool could not be registered or invoked."""


class ToolSuspendedError(AgentHubError):
    """Raised by a tool whose result must be supplied externally."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Tool execution suspended")
        self.reason = reason


@dataclass
class AgentErrorInfo:
    agent_id: str
    agent_name: str
    error: BaseException


class CompositeAgentError(AgentHubError):
    """One or more agents failed during a fanout run."""

    def __init__(self, message: str, errors: List[AgentErrorInfo]):
        details = "; ".join(f"{e.agent_name}: {e.error}" for e in errors)
        super().__init__(f"{message} ({details})" if details else message)
        self.errors = errors
