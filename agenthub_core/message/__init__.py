"""Message model: ``Msg`` and its content blocks."""

from .blocks import (
    URLSource,
    Base64Source,
    Source,
    TextBlock,
    ThinkingBlock,
    ImageBlock,
    AudioBlock,
    VideoBlock,
    ToolUseBlock,
    ToolResultBlock,
    ContentBlock,
    MEDIA_BLOCKS,
    content_block_from_dict,
)
from .msg import Msg, MsgRole, GenerateReason, MessageMetadataKeys

__all__ = [
    "URLSource",
    "Base64Source",
    "Source",
    "TextBlock",
    "ThinkingBlock",
    "ImageBlock",
    "AudioBlock",
    "VideoBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ContentBlock",
    "MEDIA_BLOCKS",
    "content_block_from_dict",
    "Msg",
    "MsgRole",
    "GenerateReason",
    "MessageMetadataKeys",
]
