"""Msg - one conversation turn (role + ordered content blocks)."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from .blocks import ContentBlock, TextBlock, content_block_from_dict

B = TypeVar("B")


class MsgRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class GenerateReason(str, Enum):
    """Why an agent produced a message."""
    MODEL_STOP = "MODEL_STOP"
    TOOL_SUSPENDED = "TOOL_SUSPENDED"
    REASONING_STOP_REQUESTED = "REASONING_STOP_REQUESTED"
    ACTING_STOP_REQUESTED = "ACTING_STOP_REQUESTED"
    INTERRUPTED = "INTERRUPTED"
    MAX_ITERATIONS = "MAX_ITERATIONS"


class MessageMetadataKeys:
    # Multi-agent formatters emit flagged messages standalone instead of
    # folding them into the <history> block.
    BYPASS_MULTIAGENT_HISTORY_MERGE = "bypass_multiagent_history_merge"


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


@dataclass
class Msg:
    """A single message exchanged between users, agents and models.

    ``content`` accepts a string, a single block or a list of blocks;
    ``None`` entries are dropped.

    Usage:
        msg = Msg(name="alice", content="Hello", role=MsgRole.USER)
        msg.get_text_content()  # "Hello"
    """

    name: Optional[str] = None
    content: List[ContentBlock] = field(default_factory=list)
    role: MsgRole = MsgRole.USER
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=_now)

    METADATA_GENERATE_REASON = "agentscope_generate_reason"

    def __post_init__(self):
        if self.content is None:
            self.content = []
        elif isinstance(self.content, str):
            self.content = [TextBlock(self.content)]
        elif not isinstance(self.content, list):
            self.content = [self.content]
        self.content = [block for block in self.content if block is not None]

        if isinstance(self.role, str) and not isinstance(self.role, MsgRole):
            self.role = MsgRole(self.role.lower())

        self.metadata = {
            k: v for k, v in (self.metadata or {}).items()
            if k is not None and v is not None
        }

    # -- Block access ----------------------------------------------------------

    def has_content_blocks(self, block_type: Type[B]) -> bool:
        return any(isinstance(block, block_type) for block in self.content)

    def get_content_blocks(self, block_type: Type[B]) -> List[B]:
        return [block for block in self.content if isinstance(block, block_type)]

    def get_first_content_block(self, block_type: Type[B]) -> Optional[B]:
        for block in self.content:
            if isinstance(block, block_type):
                return block
        return None

    def get_text_content(self) -> str:
        """Text of all text blocks joined with newlines."""
        return "\n".join(block.text for block in self.get_content_blocks(TextBlock))

    # -- Generate reason -------------------------------------------------------

    @property
    def generate_reason(self) -> GenerateReason:
        reason = self.metadata.get(self.METADATA_GENERATE_REASON)
        if isinstance(reason, GenerateReason):
            return reason
        try:
            return GenerateReason(reason)
        except ValueError:
            return GenerateReason.MODEL_STOP

    def with_generate_reason(self, reason: GenerateReason) -> "Msg":
        """Return a copy of this message tagged with ``reason``."""
        metadata = dict(self.metadata)
        metadata[self.METADATA_GENERATE_REASON] = reason.value
        return Msg(
            name=self.name,
            content=list(self.content),
            role=self.role,
            metadata=metadata,
            id=self.id,
            timestamp=self.timestamp,
        )

    # -- Serialization ---------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "content": [block.to_dict() for block in self.content],
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Msg":
        kwargs = {
            "name": data.get("name"),
            "content": [content_block_from_dict(b) for b in data.get("content", [])],
            "role": MsgRole(data.get("role", "user")),
            "metadata": data.get("metadata") or {},
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        if data.get("timestamp"):
            kwargs["timestamp"] = data["timestamp"]
        return cls(**kwargs)
