"""Tests for Msg and content blocks."""

import pytest

from agenthub_core.message import (
    Base64Source,
    GenerateReason,
    ImageBlock,
    MessageMetadataKeys,
    Msg,
    MsgRole,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    URLSource,
)
from agenthub_core.message.blocks import content_block_from_dict


class TestMsg:
    def test_string_content_becomes_text_block(self):
        msg = Msg(name="user", content="Hello")
        assert msg.content == [TextBlock("Hello")]
        assert msg.role == MsgRole.USER

    def test_single_block_is_wrapped(self):
        msg = Msg(name="user", content=TextBlock("Hi"))
        assert msg.content == [TextBlock("Hi")]

    def test_none_content_and_blocks_dropped(self):
        assert Msg(content=None).content == []
        msg = Msg(content=[TextBlock("a"), None, TextBlock("b")])
        assert msg.content == [TextBlock("a"), TextBlock("b")]

    def test_role_from_string(self):
        assert Msg(content="x", role="ASSISTANT").role == MsgRole.ASSISTANT

    def test_metadata_drops_none_values(self):
        msg = Msg(content="x", metadata={"keep": 1, "drop": None})
        assert msg.metadata == {"keep": 1}

    def test_ids_are_unique(self):
        assert Msg(content="a").id != Msg(content="a").id

    def test_get_text_content_joins_text_blocks_only(self):
        msg = Msg(content=[TextBlock("one"), ThinkingBlock("hmm"), TextBlock("two")])
        assert msg.get_text_content() == "one\ntwo"

    def test_block_access(self):
        use = ToolUseBlock(id="call_1", name="search", input={"q": "x"})
        msg = Msg(content=[TextBlock("calling"), use], role=MsgRole.ASSISTANT)
        assert msg.has_content_blocks(ToolUseBlock)
        assert not msg.has_content_blocks(ToolResultBlock)
        assert msg.get_content_blocks(ToolUseBlock) == [use]
        assert msg.get_first_content_block(TextBlock).text == "calling"
        assert msg.get_first_content_block(ImageBlock) is None

    def test_generate_reason_defaults_to_model_stop(self):
        assert Msg(content="x").generate_reason == GenerateReason.MODEL_STOP

    def test_with_generate_reason_copies(self):
        msg = Msg(name="a", content="x")
        tagged = msg.with_generate_reason(GenerateReason.TOOL_SUSPENDED)
        assert tagged.generate_reason == GenerateReason.TOOL_SUSPENDED
        assert tagged.id == msg.id
        assert msg.generate_reason == GenerateReason.MODEL_STOP

    def test_dict_round_trip_keeps_everything(self):
        msg = Msg(
            name="assistant",
            role=MsgRole.ASSISTANT,
            content=[
                ThinkingBlock("let me think"),
                TextBlock("Here"),
                ImageBlock(Base64Source("image/png", "ZmFrZQ==")),
                ToolUseBlock(id="call_1", name="search", input={"q": "tides"}, content='{"q": "tides"}'),
            ],
            metadata={MessageMetadataKeys.BYPASS_MULTIAGENT_HISTORY_MERGE: True},
        )
        restored = Msg.from_dict(msg.to_dict())
        assert restored == msg


class TestBlocks:
    def test_tool_result_output_normalised(self):
        assert ToolResultBlock(output="done").output == [TextBlock("done")]
        assert ToolResultBlock(output=None).output == []
        assert ToolResultBlock(output=TextBlock("x")).output == [TextBlock("x")]

    def test_tool_result_error_prefix(self):
        assert ToolResultBlock.error("boom").output == [TextBlock("Error: boom")]

    def test_suspended_result(self):
        use = ToolUseBlock(id="call_9", name="approve")
        result = ToolResultBlock.suspended(use, "waiting for user")
        assert result.is_suspended
        assert result.id == "call_9"
        assert result.name == "approve"
        assert result.output == [TextBlock("waiting for user")]

    def test_with_id_and_name_keeps_output_and_metadata(self):
        result = ToolResultBlock(output="x", metadata={"k": "v"})
        stamped = result.with_id_and_name("call_1", "tool")
        assert (stamped.id, stamped.name) == ("call_1", "tool")
        assert stamped.output == result.output
        assert stamped.metadata == {"k": "v"}
        assert result.id is None

    def test_url_source_block_from_dict(self):
        block = content_block_from_dict(
            {"type": "image", "source": {"type": "url", "url": "https://example.com/a.png"}}
        )
        assert block == ImageBlock(URLSource("https://example.com/a.png"))

    def test_unknown_block_type_raises(self):
        with pytest.raises(ValueError):
            content_block_from_dict({"type": "hologram"})
