"""Formatter base - shared behaviour of all vendor formatters.

A formatter is a stateless translator from ``Msg`` lists to a vendor's request
wire format (plain JSON-ready dicts), and from the vendor's response back to a
``ChatResponse``.
"""

import base64
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..message import (
    AudioBlock,
    Base64Source,
    ContentBlock,
    ImageBlock,
    MEDIA_BLOCKS,
    MessageMetadataKeys,
    Msg,
    MsgRole,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    URLSource,
    VideoBlock,
)
from ..model.types import ChatResponse, GenerateOptions, ToolChoice, ToolSchema

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_HISTORY_PROMPT = (
    "# Conversation History\n"
    "The content between <history></history> tags contains your conversation history\n"
)
HISTORY_START_TAG = "<history>"
HISTORY_END_TAG = "</history>"

_MEDIA_LABELS = {ImageBlock: "image", AudioBlock: "audio", VideoBlock: "video"}


# -- Message grouping ----------------------------------------------------------


class GroupType(str, Enum):
    AGENT_MESSAGE = "agent_message"
    TOOL_SEQUENCE = "tool_sequence"
    BYPASS = "bypass"


@dataclass
class MessageGroup:
    type: GroupType
    messages: List[Msg] = field(default_factory=list)


def is_tool_related(msg: Msg) -> bool:
    return (
        msg.role == MsgRole.TOOL
        or msg.has_content_blocks(ToolUseBlock)
        or msg.has_content_blocks(ToolResultBlock)
    )


def should_bypass_history(msg: Msg) -> bool:
    return msg.metadata.get(MessageMetadataKeys.BYPASS_MULTIAGENT_HISTORY_MERGE) is True


def group_messages_sequentially(msgs: List[Msg]) -> List[MessageGroup]:
    """Split messages into consecutive agent-message and tool-sequence runs.

    Bypass-flagged messages always form a group of their own.
    """
    groups: List[MessageGroup] = []
    for msg in msgs:
        if should_bypass_history(msg):
            msg_type = GroupType.BYPASS
        elif is_tool_related(msg):
            msg_type = GroupType.TOOL_SEQUENCE
        else:
            msg_type = GroupType.AGENT_MESSAGE

        if groups and groups[-1].type == msg_type and msg_type != GroupType.BYPASS:
            groups[-1].messages.append(msg)
        else:
            groups.append(MessageGroup(msg_type, [msg]))
    return groups


def display_name(msg: Msg) -> str:
    return msg.name if msg.name is not None else "Unknown"


# -- Tool result rendering -----------------------------------------------------


def save_base64_to_temp_file(media_type: str, data: str) -> str:
    """Decode base64 media into a temp file and return its absolute path."""
    suffix = "." + (media_type.split("/")[1] if "/" in media_type else media_type)
    with tempfile.NamedTemporaryFile(prefix="agentscope_", suffix=suffix, delete=False) as f:
        f.write(base64.b64decode(data))
        path = f.name
    logger.debug(f"Saved base64 data to temp file: {path}")
    return path


def media_block_to_text_reference(block: ContentBlock) -> str:
    label = _MEDIA_LABELS[type(block)]
    source = block.source
    if isinstance(source, URLSource):
        return f"The returned {label} can be found at: {source.url}"
    if isinstance(source, Base64Source):
        try:
            path = save_base64_to_temp_file(source.media_type, source.data)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save base64 {label} to temp file: {e}")
            return f"[{label} - failed to save file: {e}]"
        return f"The returned {label} can be found at: {path}"
    logger.warning(f"Unsupported source type for {label}: {type(source).__name__}")
    return f"[{label} - unsupported source type]"


def convert_tool_result_to_string(output: Optional[List[ContentBlock]]) -> str:
    """Render tool output as text; media is referenced by URL or temp-file path.

    One item is returned as-is, several are rendered as a "- " bullet list.
    """
    if not output:
        return ""

    textual: List[str] = []
    for block in output:
        if isinstance(block, TextBlock):
            textual.append(block.text)
        elif isinstance(block, MEDIA_BLOCKS):
            textual.append(media_block_to_text_reference(block))

    if len(textual) == 1:
        return textual[0]
    return "\n".join(f"- {item}" for item in textual)


# -- Base class ----------------------------------------------------------------


class FormatterBase(ABC):
    """Abstract base for vendor formatters.

    Subclasses implement ``_format`` and ``parse_response``; option, tool and
    tool-choice hooks write into a vendor request dict.
    """

    def format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        """Convert messages into the vendor's message list."""
        formatted = self._format(list(msgs or []))
        logger.debug(
            f"{type(self).__name__} formatted {len(msgs or [])} msgs into {len(formatted)} entries"
        )
        return formatted

    @abstractmethod
    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def parse_response(
        self, response: Dict[str, Any], start_time: Optional[datetime] = None
    ) -> ChatResponse:
        ...

    def apply_options(
        self,
        request: Dict[str, Any],
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions] = None,
    ) -> None:
        return None

    def apply_tools(self, request: Dict[str, Any], tools: Optional[List[ToolSchema]]) -> None:
        return None

    def apply_tool_choice(self, request: Dict[str, Any], tool_choice: Optional[ToolChoice]) -> None:
        return None

    messages_key = "messages"

    def build_request(
        self,
        model: str,
        msgs: List[Msg],
        tools: Optional[List[ToolSchema]] = None,
        options: Optional[GenerateOptions] = None,
        default_options: Optional[GenerateOptions] = None,
    ) -> Dict[str, Any]:
        """Assemble a complete request body for ``model``.

        The tool choice is taken from ``options`` first, then ``default_options``.
        """
        request: Dict[str, Any] = {"model": model, self.messages_key: self.format(msgs)}
        self.apply_options(request, options, default_options)
        self.apply_tools(request, tools)
        if tools:
            self.apply_tool_choice(
                request, self.get_option(options, default_options, "tool_choice")
            )
        return request

    # -- Shared helpers --------------------------------------------------------

    @staticmethod
    def extract_text_content(msg: Msg) -> str:
        """Text blocks plus text outputs of tool results, joined by newlines."""
        parts: List[str] = []
        for block in msg.content:
            if isinstance(block, TextBlock):
                parts.append(block.text)
            elif isinstance(block, ToolResultBlock):
                parts.extend(o.text for o in block.output if isinstance(o, TextBlock))
            elif isinstance(block, ThinkingBlock):
                logger.debug("Skipping ThinkingBlock when formatting message for LLM API")
        return "\n".join(parts)

    @staticmethod
    def has_media_content(msg: Msg) -> bool:
        return any(isinstance(block, MEDIA_BLOCKS) for block in msg.content)

    @staticmethod
    def format_role_label(role: MsgRole) -> str:
        return role.value.capitalize()

    @staticmethod
    def should_bypass_history(msg: Msg) -> bool:
        return should_bypass_history(msg)

    @staticmethod
    def get_option(
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions],
        name: str,
    ) -> Any:
        """Value of ``name`` from ``options``, falling back to ``default_options``."""
        value = getattr(options, name, None) if options is not None else None
        if value is None and default_options is not None:
            value = getattr(default_options, name, None)
        return value

    @staticmethod
    def convert_tool_result_to_string(output: Optional[List[ContentBlock]]) -> str:
        return convert_tool_result_to_string(output)

    @staticmethod
    def merge_additional(
        options: Optional[GenerateOptions],
        default_options: Optional[GenerateOptions],
        name: str,
    ) -> Optional[Dict[str, Any]]:
        """Merge an ``additional_*`` map; call options win over defaults."""
        merged: Dict[str, Any] = {}
        for opts in (default_options, options):
            if opts is not None:
                merged.update(getattr(opts, name) or {})
        return merged or None

    @staticmethod
    def elapsed_seconds(start_time: Optional[datetime]) -> float:
        if start_time is None:
            return 0.0
        return max((datetime.now() - start_time).total_seconds(), 0.0)
