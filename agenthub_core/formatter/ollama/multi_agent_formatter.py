"""Multi-agent Ollama formatter."""

import logging
from typing import Any, Dict, List, Optional

from ...message import ImageBlock, Msg, MsgRole, ToolResultBlock
from ..base import (
    DEFAULT_CONVERSATION_HISTORY_PROMPT,
    GroupType,
    group_messages_sequentially,
    is_tool_related,
)
from .chat_formatter import OllamaChatFormatter, image_reference, promotion_header
from .converter import image_to_base64
from .merger import OllamaConversationMerger

logger = logging.getLogger(__name__)


class OllamaMultiAgentFormatter(OllamaChatFormatter):
    """Ollama formatter for conversations between several named agents.

    A leading system message is sent as-is. A single remaining non-tool
    message is converted directly; longer conversations are merged into
    ``<history>`` blocks with tool call sequences kept verbatim.

    Usage:
        formatter = OllamaMultiAgentFormatter(promote_tool_result_images=True)
        messages = formatter.format(msgs)
    """

    def __init__(
        self,
        conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT,
        promote_tool_result_images: bool = False,
    ):
        super().__init__(promote_tool_result_images=promote_tool_result_images)
        self.conversation_history_prompt = conversation_history_prompt
        self.merger = OllamaConversationMerger(conversation_history_prompt)

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []

        start = 0
        if msgs and msgs[0].role == MsgRole.SYSTEM:
            result.append({"role": "system", "content": self.extract_text_content(msgs[0])})
            start = 1

        remaining = msgs[start:]
        if len(remaining) == 1 and not is_tool_related(remaining[0]):
            result.append(self.converter.convert_message(remaining[0]))
            return result

        is_first_agent_group = True
        for group in group_messages_sequentially(remaining):
            if group.type == GroupType.AGENT_MESSAGE:
                prompt = self.conversation_history_prompt if is_first_agent_group else ""
                result.append(self.merger.merge_to_message(group.messages, prompt))
                is_first_agent_group = False
            elif group.type == GroupType.TOOL_SEQUENCE:
                result.extend(self._format_tool_sequence(group.messages))
            else:
                result.extend(self.converter.convert_message(m) for m in group.messages)

        return result

    def _format_tool_sequence(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        for msg in msgs:
            converted = self.converter.convert_message(msg)
            result.append(converted)

            if not self.promote_tool_result_images or msg.role != MsgRole.TOOL:
                continue
            result_block = msg.get_first_content_block(ToolResultBlock)
            if result_block is None:
                continue
            images = [o for o in result_block.output if isinstance(o, ImageBlock)]
            if not images:
                continue
            for image in images:
                converted["content"] += f"\nimage can be found at: {image_reference(image)}"
            promoted = self._image_promotion_message(result_block.name, images[0])
            if promoted is not None:
                result.append(promoted)
        return result

    @staticmethod
    def _image_promotion_message(tool_name: Optional[str], image: ImageBlock) -> Optional[Dict[str, Any]]:
        data = image_to_base64(image)
        if data is None:
            return None
        return {
            "role": "user",
            "content": (
                f"{promotion_header(tool_name)}\n\n"
                f"- The image from '{image_reference(image)}': \n</system-info>"
            ),
            "images": [data],
        }
