"""Tests for the OpenAI formatters."""

import pytest

from agenthub_core.exceptions import FormatterError
from agenthub_core.formatter import OpenAIChatFormatter, OpenAIMultiAgentFormatter
from agenthub_core.formatter.base import DEFAULT_CONVERSATION_HISTORY_PROMPT
from agenthub_core.formatter.openai.response_parser import FRAGMENT_PLACEHOLDER
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
from agenthub_core.model.types import GenerateOptions, ToolChoice, ToolSchema

IMAGE_B64 = "ZmFrZSBpbWFnZSBjb250ZW50"
AUDIO_B64 = "ZmFrZSBhdWRpbyBjb250ZW50"


@pytest.fixture
def formatter():
    return OpenAIChatFormatter()


@pytest.fixture
def tool_call_msg():
    return Msg(
        name="assistant",
        content=[
            TextBlock("Let me look that up."),
            ToolUseBlock(id="call_1", name="get_weather", input={"city": "北京"}),
        ],
        role=MsgRole.ASSISTANT,
    )


@pytest.fixture
def tool_result_msg():
    return Msg(
        name="system",
        content=[ToolResultBlock(id="call_1", name="get_weather", output="Sunny, 25°C")],
        role=MsgRole.SYSTEM,
    )


class TestOpenAIChatFormatter:
    def test_text_conversation(self, formatter, system_msg, tool_call_msg, tool_result_msg):
        messages = formatter.format(
            [system_msg, Msg(name="user", content="Weather in Beijing?"), tool_call_msg, tool_result_msg]
        )
        assert messages == [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "name": "user", "content": "Weather in Beijing?"},
            {
                "role": "assistant",
                "name": "assistant",
                "content": "Let me look that up.",
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "get_weather", "arguments": '{"city": "北京"}'},
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": "Sunny, 25°C"},
        ]

    def test_user_media_parts(self, formatter, image_path):
        msg = Msg(
            name="user",
            content=[
                TextBlock("What is this?"),
                ImageBlock(URLSource(image_path)),
                ImageBlock(URLSource("https://example.com/cat.png")),
                AudioBlock(Base64Source("audio/wav", AUDIO_B64)),
            ],
        )
        message = formatter.format([msg])[0]
        assert message["content"] == [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{IMAGE_B64}"}},
            {"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}},
            {"type": "input_audio", "input_audio": {"data": AUDIO_B64, "format": "wav"}},
        ]

    def test_url_audio_referenced_as_text(self, formatter):
        msg = Msg(name="user", content=[AudioBlock(URLSource("https://example.com/a.mp3"))])
        assert formatter.format([msg])[0]["content"] == [
            {"type": "text", "text": "[Audio URL: https://example.com/a.mp3]"}
        ]

    def test_unreadable_image_placeholder(self, formatter, tmp_path):
        msg = Msg(name="user", content=[ImageBlock(URLSource(str(tmp_path / "gone.png")))])
        part = formatter.format([msg])[0]["content"][0]
        assert part["type"] == "text"
        assert part["text"].startswith("[Image - processing failed:")

    def test_assistant_reasoning_and_signature(self, formatter):
        msg = Msg(
            name="assistant",
            role=MsgRole.ASSISTANT,
            content=[
                ThinkingBlock("step by step"),
                ToolUseBlock(id="c1", name="a", input={}, metadata={ToolUseBlock.METADATA_THOUGHT_SIGNATURE: "sig"}),
                ToolUseBlock(id="c2", name="b", input={}, content='{"x": 1}'),
            ],
        )
        message = formatter.format([msg])[0]
        assert "content" not in message
        assert message["reasoning_content"] == "step by step"
        first, second = message["tool_calls"]
        assert first["function"]["thought_signature"] == "sig"
        # parallel calls inherit the first signature
        assert second["function"]["thought_signature"] == "sig"
        assert second["function"]["arguments"] == '{"x": 1}'

    def test_tool_use_without_id_skipped(self, formatter):
        msg = Msg(name="a", role=MsgRole.ASSISTANT, content=[ToolUseBlock(id="", name="f")])
        assert formatter.format([msg])[0]["tool_calls"] == []

    def test_tool_result_with_image_uses_parts(self, formatter):
        msg = Msg(
            name="tool",
            role=MsgRole.TOOL,
            content=[
                ToolResultBlock(
                    id="call_2",
                    name="screenshot",
                    output=[TextBlock("done"), ImageBlock(Base64Source("image/png", IMAGE_B64))],
                )
            ],
        )
        message = formatter.format([msg])[0]
        assert message["tool_call_id"] == "call_2"
        assert message["content"][1]["image_url"]["url"] == f"data:image/png;base64,{IMAGE_B64}"

    def test_build_request(self, formatter):
        tools = [ToolSchema(name="get_weather", description="Weather", strict=True)]
        request = formatter.build_request(
            "gpt-4o-mini",
            [Msg(name="user", content="hi")],
            tools=tools,
            options=GenerateOptions(
                temperature=0.2,
                max_tokens=100,
                seed=7,
                additional_body_params={"user": "u-1"},
            ),
            default_options=GenerateOptions(top_p=0.9, tool_choice=ToolChoice.specific("get_weather")),
        )
        assert request["model"] == "gpt-4o-mini"
        assert request["temperature"] == 0.2
        assert request["top_p"] == 0.9
        assert request["max_tokens"] == 100
        assert request["max_completion_tokens"] == 100
        assert request["seed"] == 7
        assert request["user"] == "u-1"
        assert request["tools"][0]["function"]["strict"] is True
        assert request["tool_choice"] == {"type": "function", "function": {"name": "get_weather"}}

    def test_strict_dropped_when_unsupported(self):
        formatter = OpenAIChatFormatter(supports_strict=False)
        request = formatter.build_request("m", [], tools=[ToolSchema(name="f", strict=True)])
        assert "strict" not in request["tools"][0]["function"]
        assert request["tool_choice"] == "auto"

    def test_no_tool_choice_without_tools(self, formatter):
        request = formatter.build_request("m", [], options=GenerateOptions(tool_choice=ToolChoice.none()))
        assert "tool_choice" not in request


class TestOpenAIMultiAgentFormatter:
    def test_agent_messages_merged(self, system_msg, tool_call_msg, tool_result_msg):
        formatter = OpenAIMultiAgentFormatter()
        msgs = [
            system_msg,
            Msg(name="alice", content="Is it going to rain?"),
            Msg(name="bob", content="I'll check.", role=MsgRole.ASSISTANT),
            tool_call_msg,
            tool_result_msg,
            Msg(name="bob", content="No rain today.", role=MsgRole.ASSISTANT),
        ]
        messages = formatter.format(msgs)

        assert messages[0] == {"role": "system", "content": "You are a helpful assistant."}
        assert messages[1] == {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": DEFAULT_CONVERSATION_HISTORY_PROMPT
                    + "<history>\nalice: Is it going to rain?\n</history>\nbob: I'll check.\n",
                }
            ],
        }
        assert messages[2]["role"] == "assistant"
        assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": "Sunny, 25°C"}
        assert messages[4] == {
            "role": "user",
            "content": [{"type": "text", "text": "<history>\n</history>\nNo rain today.\n"}],
        }

    def test_bypass_message_kept_out_of_history(self):
        msgs = [
            Msg(name="alice", content="first"),
            Msg(
                name="host",
                content="standalone note",
                metadata={MessageMetadataKeys.BYPASS_MULTIAGENT_HISTORY_MERGE: True},
            ),
            Msg(name="bob", content="second", role=MsgRole.ASSISTANT),
        ]
        messages = OpenAIMultiAgentFormatter().format(msgs)

        assert messages == [
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": DEFAULT_CONVERSATION_HISTORY_PROMPT + "<history>\n</history>\nfirst\n",
                    }
                ],
            },
            {"role": "user", "name": "host", "content": "standalone note"},
            {"role": "user", "content": [{"type": "text", "text": "<history>\n</history>\nsecond\n"}]},
        ]

    def test_media_interrupts_text(self):
        formatter = OpenAIMultiAgentFormatter(conversation_history_prompt="")
        msgs = [
            Msg(name="alice", content=[TextBlock("Look:"), ImageBlock(URLSource("https://example.com/a.png"))]),
            Msg(name="bob", content="Nice."),
        ]
        content = formatter.format(msgs)[0]["content"]
        assert content == [
            {"type": "text", "text": "<history>\nalice: Look:\n"},
            {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
            {"type": "text", "text": "</history>\nbob: Nice.\n"},
        ]

    def test_thinking_and_tool_results_in_history(self):
        formatter = OpenAIMultiAgentFormatter(conversation_history_prompt="")
        msgs = [
            Msg(name="alice", content=[ThinkingBlock("hmm")]),
            Msg(name="bob", content="ok"),
        ]
        text = formatter.format(msgs)[0]["content"][0]["text"]
        assert text == "<history>\nalice: [Thinking]: hmm\n</history>\nbob: ok\n"


class TestOpenAIResponseParsing:
    def test_parse_completion(self, formatter):
        response = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "choices": [
                {
                    "finish_reason": "tool_calls",
                    "message": {
                        "role": "assistant",
                        "reasoning_content": "thinking",
                        "content": "Checking",
                        "tool_calls": [
                            {
                                "id": "call_1",
                                "type": "function",
                                "function": {"name": "get_weather", "arguments": '{"city": "Paris"}'},
                            },
                            {"id": "call_2", "function": {"name": "", "arguments": "{}"}},
                            {"id": "call_3", "function": {"name": "broken", "arguments": "{oops"}},
                        ],
                    },
                }
            ],
            "usage": {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20},
        }
        parsed = formatter.parse_response(response)

        assert parsed.id == "chatcmpl-1"
        assert parsed.finish_reason == "tool_calls"
        assert parsed.content[0] == ThinkingBlock("thinking")
        assert parsed.content[1] == TextBlock("Checking")
        assert len(parsed.content) == 3
        tool_use = parsed.content[2]
        assert tool_use.input == {"city": "Paris"}
        assert tool_use.content == '{"city": "Paris"}'
        assert parsed.usage.total_tokens == 20

    def test_encrypted_reasoning_signature(self, formatter):
        response = {
            "choices": [
                {
                    "message": {
                        "tool_calls": [{"id": "call_1", "function": {"name": "f", "arguments": ""}}],
                        "reasoning_details": [{"type": "reasoning.encrypted", "id": "call_1", "data": "enc"}],
                    }
                }
            ]
        }
        tool_use = formatter.parse_response(response).content[0]
        assert tool_use.metadata == {ToolUseBlock.METADATA_THOUGHT_SIGNATURE: "enc"}

    def test_parse_stream_chunks(self, formatter):
        first = {
            "id": "c",
            "object": "chat.completion.chunk",
            "choices": [{"delta": {"tool_calls": [{"index": 0, "id": "call_1", "function": {"name": "f", "arguments": ""}}]}}],
        }
        fragment = {
            "id": "c",
            "object": "chat.completion.chunk",
            "choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": '{"a"'}}]}}],
        }
        text = {
            "id": "c",
            "object": "chat.completion.chunk",
            "choices": [{"delta": {"content": "Hi"}, "finish_reason": None}],
        }

        assert formatter.parse_response(first).content[0].name == "f"
        partial = formatter.parse_response(fragment).content[0]
        assert partial.name == FRAGMENT_PLACEHOLDER
        assert partial.input == {}
        assert partial.content == '{"a"'
        assert formatter.parse_response(text).content == [TextBlock("Hi")]

    def test_stream_error_chunk_raises(self, formatter):
        with pytest.raises(FormatterError, match="rate limited"):
            formatter.parse_response({"error": {"message": "rate limited"}})

    def test_list_content_joined(self, formatter):
        response = {"choices": [{"message": {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}}]}
        assert formatter.parse_response(response).content == [TextBlock("ab")]
