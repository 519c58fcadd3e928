"""Tests for shared formatter helpers and media utilities."""

import base64
import os

import pytest

from agenthub_core.formatter.base import (
    FormatterBase,
    GroupType,
    convert_tool_result_to_string,
    group_messages_sequentially,
)
from agenthub_core.formatter.media import (
    determine_media_type,
    file_to_base64,
    get_extension,
    infer_audio_format,
    is_local_file,
    source_to_base64,
    validate_image_extension,
)
from agenthub_core.message import (
    AudioBlock,
    Base64Source,
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
from agenthub_core.model.types import GenerateOptions

from conftest import normalize_temp_paths


class TestGrouping:
    def test_consecutive_runs_are_grouped(self):
        msgs = [
            Msg(name="alice", content="hi"),
            Msg(name="bob", content="hello"),
            Msg(name="bob", role=MsgRole.ASSISTANT, content=[ToolUseBlock(id="c1", name="t")]),
            Msg(name="system", role=MsgRole.SYSTEM, content=[ToolResultBlock(id="c1", name="t", output="ok")]),
            Msg(name="bob", content="done"),
        ]
        groups = group_messages_sequentially(msgs)
        assert [g.type for g in groups] == [
            GroupType.AGENT_MESSAGE,
            GroupType.TOOL_SEQUENCE,
            GroupType.AGENT_MESSAGE,
        ]
        assert [len(g.messages) for g in groups] == [2, 2, 1]

    def test_tool_role_counts_as_tool_sequence(self):
        groups = group_messages_sequentially([Msg(name="t", role=MsgRole.TOOL, content="x")])
        assert groups[0].type == GroupType.TOOL_SEQUENCE

    def test_bypass_messages_stand_alone(self):
        flag = {MessageMetadataKeys.BYPASS_MULTIAGENT_HISTORY_MERGE: True}
        msgs = [
            Msg(name="a", content="1"),
            Msg(name="a", content="2", metadata=flag),
            Msg(name="a", content="3", metadata=flag),
            Msg(name="a", content="4"),
        ]
        groups = group_messages_sequentially(msgs)
        assert [g.type for g in groups] == [
            GroupType.AGENT_MESSAGE,
            GroupType.BYPASS,
            GroupType.BYPASS,
            GroupType.AGENT_MESSAGE,
        ]

    def test_empty_input(self):
        assert group_messages_sequentially([]) == []


class TestToolResultString:
    def test_empty_output(self):
        assert convert_tool_result_to_string([]) == ""
        assert convert_tool_result_to_string(None) == ""

    def test_single_text_is_returned_as_is(self):
        assert convert_tool_result_to_string([TextBlock("Sunny")]) == "Sunny"

    def test_multiple_items_become_bullets(self):
        output = [
            TextBlock("The capital of Japan is Tokyo."),
            ImageBlock(URLSource("./image.png")),
        ]
        assert convert_tool_result_to_string(output) == (
            "- The capital of Japan is Tokyo.\n"
            "- The returned image can be found at: ./image.png"
        )

    def test_base64_media_saved_to_temp_file(self):
        data = base64.b64encode(b"fake audio content").decode()
        rendered = convert_tool_result_to_string([AudioBlock(Base64Source("audio/mp3", data))])
        assert normalize_temp_paths(rendered) == "The returned audio can be found at: <tmp>"

        path = rendered.split(": ", 1)[1]
        try:
            assert path.endswith(".mp3")
            with open(path, "rb") as f:
                assert f.read() == b"fake audio content"
        finally:
            os.remove(path)

    def test_non_text_blocks_ignored(self):
        assert convert_tool_result_to_string([ThinkingBlock("x"), TextBlock("y")]) == "y"


class TestFormatterBaseHelpers:
    def test_extract_text_content_includes_tool_result_text(self):
        msg = Msg(
            content=[
                TextBlock("a"),
                ThinkingBlock("skip"),
                ToolResultBlock(id="c", name="t", output=[TextBlock("b")]),
            ]
        )
        assert FormatterBase.extract_text_content(msg) == "a\nb"

    def test_has_media_content(self):
        assert FormatterBase.has_media_content(Msg(content=[ImageBlock(URLSource("https://x/a.png"))]))
        assert not FormatterBase.has_media_content(Msg(content="plain"))

    def test_format_role_label(self):
        assert FormatterBase.format_role_label(MsgRole.ASSISTANT) == "Assistant"

    def test_get_option_falls_back_to_defaults(self):
        options = GenerateOptions(temperature=0.2)
        defaults = GenerateOptions(temperature=0.9, top_p=0.5)
        assert FormatterBase.get_option(options, defaults, "temperature") == 0.2
        assert FormatterBase.get_option(options, defaults, "top_p") == 0.5
        assert FormatterBase.get_option(None, None, "seed") is None

    def test_merge_additional_call_options_win(self):
        options = GenerateOptions(additional_headers={"X-A": "call"})
        defaults = GenerateOptions(additional_headers={"X-A": "default", "X-B": "b"})
        assert FormatterBase.merge_additional(options, defaults, "additional_headers") == {
            "X-A": "call",
            "X-B": "b",
        }
        assert FormatterBase.merge_additional(None, None, "additional_headers") is None

    def test_generate_options_merge(self):
        merged = GenerateOptions(temperature=0.5, max_tokens=10).merge(GenerateOptions(max_tokens=20))
        assert merged.temperature == 0.5
        assert merged.max_tokens == 20


class TestMedia:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("photo.PNG", "png"),
            ("https://example.com/a.jpg?size=2", "jpg"),
            ("dir.v2/file", ""),
            ("noext", ""),
        ],
    )
    def test_get_extension(self, path, expected):
        assert get_extension(path) == expected

    def test_determine_media_type(self):
        assert determine_media_type("a.mp3") == "audio/mp3"
        assert determine_media_type("a.jpeg") == "image/jpeg"
        assert determine_media_type("a.xyz") == "application/octet-stream"

    def test_is_local_file(self):
        assert is_local_file("./image.png")
        assert is_local_file("/tmp/a.png")
        assert not is_local_file("https://example.com/a.png")
        assert not is_local_file("oss://bucket/a.png")

    def test_infer_audio_format(self):
        assert infer_audio_format("audio/wav") == "wav"
        assert infer_audio_format("audio/mpeg") == "mp3"

    def test_validate_image_extension(self):
        validate_image_extension("a.png")
        with pytest.raises(ValueError):
            validate_image_extension("a.mp3")

    def test_file_to_base64(self, image_path):
        assert file_to_base64(image_path) == "ZmFrZSBpbWFnZSBjb250ZW50"

    def test_file_to_base64_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            file_to_base64(str(tmp_path / "missing.png"))

    def test_source_to_base64(self, image_path):
        assert source_to_base64(URLSource(image_path)) == ("ZmFrZSBpbWFnZSBjb250ZW50", "image/png")
        assert source_to_base64(Base64Source("image/gif", "abc")) == ("abc", "image/gif")
