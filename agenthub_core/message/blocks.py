"""Content blocks - the typed pieces a message is made of.

A ``Msg`` carries an ordered list of blocks:
- TextBlock / ThinkingBlock: plain and reasoning text
- ImageBlock / AudioBlock / VideoBlock: media referenced by a source
- ToolUseBlock / ToolResultBlock: a tool call and its result

Usage:
    from agenthub_core.message import TextBlock, ImageBlock, URLSource

    blocks = [
        TextBlock("What is in this picture?"),
        ImageBlock(URLSource("https://example.com/dog.png")),
    ]
"""

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union


# -- Sources -------------------------------------------------------------------


@dataclass
class URLSource:
    """Media referenced by a remote URL or a local file path."""
    url: str
    type: ClassVar[str] = "url"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "url": self.url}


@dataclass
class Base64Source:
    """Inline media encoded as base64."""
    media_type: str
    data: str
    type: ClassVar[str] = "base64"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "media_type": self.media_type, "data": self.data}


Source = Union[URLSource, Base64Source]


def source_from_dict(data: Dict[str, Any]) -> Source:
    if data.get("type") == "base64":
        return Base64Source(media_type=data["media_type"], data=data["data"])
    return URLSource(url=data["url"])


# -- Blocks --------------------------------------------------------------------


@dataclass
class TextBlock:
    text: str = ""
    type: ClassVar[str] = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass
class ThinkingBlock:
    thinking: str = ""
    type: ClassVar[str] = "thinking"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "thinking": self.thinking}


@dataclass
class ImageBlock:
    source: Source
    type: ClassVar[str] = "image"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "source": self.source.to_dict()}


@dataclass
class AudioBlock:
    source: Source
    type: ClassVar[str] = "audio"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "source": self.source.to_dict()}


@dataclass
class VideoBlock:
    source: Source
    type: ClassVar[str] = "video"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "source": self.source.to_dict()}


@dataclass
class ToolUseBlock:
    """A tool call requested by the model.

    Attributes:
        id: Call identifier used to pair the call with its result
        name: Tool name
        input: Parsed arguments
        content: Raw argument string as streamed by the model, if any
        metadata: Vendor extras (e.g. Gemini thought signature)
    """
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    content: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "tool_use"

    METADATA_THOUGHT_SIGNATURE: ClassVar[str] = "thoughtSignature"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "input": self.input,
        }
        if self.content is not None:
            result["content"] = self.content
        if self.metadata:
            result["metadata"] = self.metadata
        return result


@dataclass
class ToolResultBlock:
    """The result of executing a tool call.

    Attributes:
        id: Identifier of the tool call this result answers
        name: Tool name
        output: Result content (text and media blocks)
        metadata: Extra flags (e.g. suspended execution)
    """
    id: Optional[str] = None
    name: Optional[str] = None
    output: List["ContentBlock"] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "tool_result"

    METADATA_SUSPENDED: ClassVar[str] = "agentscope_suspended"

    def __post_init__(self):
        if self.output is None:
            self.output = []
        elif isinstance(self.output, str):
            self.output = [TextBlock(self.output)]
        elif not isinstance(self.output, list):
            self.output = [self.output]

    @classmethod
    def of(cls, id: Optional[str], name: Optional[str], output: Any) -> "ToolResultBlock":
        """Build a result from a block, a list of blocks or a string."""
        return cls(id=id, name=name, output=output)

    @classmethod
    def text(cls, text: str) -> "ToolResultBlock":
        return cls(output=[TextBlock(text)])

    @classmethod
    def error(cls, message: str) -> "ToolResultBlock":
        return cls(output=[TextBlock(f"Error: {message}")])

    @classmethod
    def suspended(cls, tool_use: ToolUseBlock, reason: Optional[str] = None) -> "ToolResultBlock":
        """Result placeholder for a tool the caller must execute externally."""
        text = reason or "Tool execution suspended, awaiting external result"
        return cls(
            id=tool_use.id,
            name=tool_use.name,
            output=[TextBlock(text)],
            metadata={cls.METADATA_SUSPENDED: True},
        )

    @property
    def is_suspended(self) -> bool:
        return self.metadata.get(self.METADATA_SUSPENDED) is True

    def with_id_and_name(self, id: str, name: str) -> "ToolResultBlock":
        return ToolResultBlock(
            id=id,
            name=name,
            output=list(self.output),
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "output": [block.to_dict() for block in self.output],
        }
        if self.metadata:
            result["metadata"] = copy.deepcopy(self.metadata)
        return result


ContentBlock = Union[
    TextBlock,
    ThinkingBlock,
    ImageBlock,
    AudioBlock,
    VideoBlock,
    ToolUseBlock,
    ToolResultBlock,
]

MEDIA_BLOCKS = (ImageBlock, AudioBlock, VideoBlock)


def content_block_from_dict(data: Dict[str, Any]) -> ContentBlock:
    """Rebuild a content block from its ``to_dict()`` form.

    Raises:
        ValueError: If the block type is unknown
    """
    block_type = data.get("type")
    if block_type == "text":
        return TextBlock(data.get("text", ""))
    if block_type == "thinking":
        return ThinkingBlock(data.get("thinking", ""))
    if block_type == "image":
        return ImageBlock(source_from_dict(data["source"]))
    if block_type == "audio":
        return AudioBlock(source_from_dict(data["source"]))
    if block_type == "video":
        return VideoBlock(source_from_dict(data["source"]))
    if block_type == "tool_use":
        return ToolUseBlock(
            id=data["id"],
            name=data["name"],
            input=data.get("input") or {},
            content=data.get("content"),
            metadata=data.get("metadata") or {},
        )
    if block_type == "tool_result":
        return ToolResultBlock(
            id=data.get("id"),
            name=data.get("name"),
            output=[content_block_from_dict(b) for b in data.get("output", [])],
            metadata=data.get("metadata") or {},
        )
    raise ValueError(f"Unknown content block type: {block_type}")
