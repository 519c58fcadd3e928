"""Tests for agents, pipelines and MsgHub."""

import asyncio

import pytest
from agents import Usage

from agenthub_core.agent import AgentBase, ChatAgent
from agenthub_core.exceptions import CompositeAgentError
from agenthub_core.formatter import OpenAIChatFormatter, OpenAIMultiAgentFormatter
from agenthub_core.memory import InMemoryMemory
from agenthub_core.message import Msg, MsgRole, TextBlock
from agenthub_core.model.base import ChatModelBase
from agenthub_core.model.types import GenerateOptions
from agenthub_core.pipeline import (
    FanoutPipeline,
    MsgHub,
    SequentialPipeline,
    fanout_pipeline,
    sequential_pipeline,
)


class EchoAgent(AgentBase):
    """Replies with what it received, prefixed by its name."""

    def __init__(self, name, delay=0.0, fail=False):
        super().__init__(name)
        self.delay = delay
        self.fail = fail
        self.received = []

    async def reply(self, msg=None):
        self.received.append(msg)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{self.name} failed")
        text = msg.get_text_content() if isinstance(msg, Msg) else ""
        return Msg(name=self.name, content=f"{self.name}: {text}", role=MsgRole.ASSISTANT)


class FakeChatModel(ChatModelBase):
    """Answers with canned completions and records the requests it got."""

    def __init__(self, replies, formatter=None):
        super().__init__("fake-model", formatter or OpenAIChatFormatter())
        self.replies = list(replies)
        self.requests = []

    async def _call_api(self, request, options):
        self.requests.append(request)
        return {
            "id": f"resp-{len(self.requests)}",
            "choices": [{"finish_reason": "stop", "message": {"content": self.replies.pop(0)}}],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5},
        }


# -- Pipelines -----------------------------------------------------------------


class TestSequentialPipeline:
    async def test_each_reply_feeds_next_agent(self):
        a, b = EchoAgent("a"), EchoAgent("b")
        result = await sequential_pipeline([a, b], Msg(name="user", content="go"))
        assert result.get_text_content() == "b: a: go"
        assert b.received[0].name == "a"

    async def test_no_agents_returns_input(self):
        msg = Msg(name="user", content="unchanged")
        assert await sequential_pipeline([], msg) is msg

    async def test_class_form(self):
        pipeline = SequentialPipeline([EchoAgent("x")])
        result = await pipeline(Msg(name="user", content="hi"))
        assert result.get_text_content() == "x: hi"


class TestFanoutPipeline:
    async def test_replies_in_agent_order(self):
        agents = [EchoAgent("slow", delay=0.02), EchoAgent("fast")]
        replies = await fanout_pipeline(agents, Msg(name="user", content="q"))
        assert [r.name for r in replies] == ["slow", "fast"]

    async def test_each_agent_gets_its_own_copy(self):
        a, b = EchoAgent("a"), EchoAgent("b")
        msg = Msg(name="user", content="q")
        await fanout_pipeline([a, b], msg)
        assert a.received[0] is not msg
        assert a.received[0] is not b.received[0]
        assert a.received[0].id == msg.id

    async def test_sequential_mode(self):
        replies = await fanout_pipeline([EchoAgent("a"), EchoAgent("b")], Msg(content="q"), enable_concurrent=False)
        assert [r.get_text_content() for r in replies] == ["a: q", "b: q"]

    async def test_empty_agents(self):
        assert await fanout_pipeline([], Msg(content="q")) == []

    async def test_concurrent_failures_collected(self):
        agents = [EchoAgent("ok"), EchoAgent("bad1", fail=True), EchoAgent("bad2", fail=True)]
        with pytest.raises(CompositeAgentError) as exc_info:
            await fanout_pipeline(agents, Msg(content="q"))
        errors = exc_info.value.errors
        assert [e.agent_name for e in errors] == ["bad1", "bad2"]
        assert all(isinstance(e.error, RuntimeError) for e in errors)
        assert errors[0].agent_id == agents[1].id

    async def test_sequential_failure_propagates(self):
        with pytest.raises(RuntimeError, match="bad failed"):
            await fanout_pipeline([EchoAgent("bad", fail=True)], Msg(content="q"), enable_concurrent=False)

    async def test_class_form(self):
        pipeline = FanoutPipeline([EchoAgent("a"), EchoAgent("b")])
        replies = await pipeline(Msg(content="q"))
        assert len(replies) == 2


# -- MsgHub --------------------------------------------------------------------


class TestMsgHub:
    async def test_announcement_and_auto_broadcast(self):
        alice, bob, carol = EchoAgent("alice"), EchoAgent("bob"), EchoAgent("carol")
        announcement = Msg(name="host", content="Introduce yourselves")

        async with MsgHub([alice, bob, carol], announcement=announcement):
            reply = await alice()

        for agent in (alice, bob, carol):
            assert (await agent.memory.get_memory())[0].id == announcement.id
        bob_memory = await bob.memory.get_memory()
        assert bob_memory[-1].id == reply.id
        # the speaker does not observe its own reply
        assert len(await alice.memory.get_memory()) == 1

    async def test_subscribers_removed_on_exit(self):
        alice, bob = EchoAgent("alice"), EchoAgent("bob")
        async with MsgHub([alice, bob]):
            pass
        await alice()
        assert await bob.memory.size() == 0
        assert alice._subscribers == {}

    async def test_auto_broadcast_disabled(self):
        alice, bob = EchoAgent("alice"), EchoAgent("bob")
        async with MsgHub([alice, bob], enable_auto_broadcast=False) as hub:
            reply = await alice()
            assert await bob.memory.size() == 0
            await hub.broadcast(reply)
        assert await bob.memory.size() == 1

    async def test_add_and_delete_participants(self):
        alice, bob, carol = EchoAgent("alice"), EchoAgent("bob"), EchoAgent("carol")
        async with MsgHub([alice, bob]) as hub:
            hub.add(carol)
            await alice()
            assert await carol.memory.size() == 1

            hub.delete(bob)
            await alice()
            assert await bob.memory.size() == 1
            assert await carol.memory.size() == 2

            hub.delete(EchoAgent("stranger"))
            assert hub.participants == [alice, carol]

    async def test_set_auto_broadcast(self):
        alice, bob = EchoAgent("alice"), EchoAgent("bob")
        async with MsgHub([alice, bob]) as hub:
            hub.set_auto_broadcast(False)
            await alice()
            assert await bob.memory.size() == 0
            hub.set_auto_broadcast(True)
            await alice()
            assert await bob.memory.size() == 1

    async def test_nested_hubs(self):
        alice, bob, carol = EchoAgent("alice"), EchoAgent("bob"), EchoAgent("carol")
        async with MsgHub([alice, bob], name="outer"):
            async with MsgHub([alice, carol], name="inner"):
                await alice()
            assert await bob.memory.size() == 1
            assert await carol.memory.size() == 1
            assert set(alice._subscribers) == {"outer"}

    def test_requires_participants(self):
        with pytest.raises(ValueError):
            MsgHub([])


# -- ChatAgent -----------------------------------------------------------------


class TestChatAgent:
    async def test_reply_uses_system_prompt_and_memory(self, sample_usage):
        model = FakeChatModel(["Hello there!"])
        agent = ChatAgent("bot", "You are terse.", model)

        reply = await agent(Msg(name="user", content="Hi"))

        assert reply.name == "bot"
        assert reply.role == MsgRole.ASSISTANT
        assert reply.get_text_content() == "Hello there!"
        assert model.requests[0]["messages"] == [
            {"role": "system", "content": "You are terse."},
            {"role": "user", "name": "user", "content": "Hi"},
        ]
        assert await agent.memory.size() == 2
        assert agent.usage.requests == sample_usage.requests
        assert agent.usage.total_tokens == 15

    async def test_usage_accumulates(self):
        agent = ChatAgent("bot", "sys", FakeChatModel(["one", "two"]))
        await agent(Msg(name="user", content="a"))
        await agent(Msg(name="user", content="b"))
        assert isinstance(agent.usage, Usage)
        assert agent.usage.requests == 2
        assert agent.usage.input_tokens == 20

    async def test_formatter_override_does_not_touch_shared_model(self):
        model = FakeChatModel(["ok"])
        agent = ChatAgent("bot", "sys", model, formatter=OpenAIMultiAgentFormatter())
        assert isinstance(model.formatter, OpenAIChatFormatter)
        assert not isinstance(model.formatter, OpenAIMultiAgentFormatter)
        assert isinstance(agent.model.formatter, OpenAIMultiAgentFormatter)

    async def test_options_passed_to_model(self):
        model = FakeChatModel(["ok"])
        agent = ChatAgent("bot", "sys", model, options=GenerateOptions(temperature=0.3))
        await agent()
        assert model.requests[0]["temperature"] == 0.3

    async def test_empty_model_reply(self):
        agent = ChatAgent("bot", "sys", FakeChatModel([""]))
        reply = await agent(Msg(name="user", content="?"))
        assert reply.content == [TextBlock("")]

    async def test_round_table_with_msghub(self):
        model = FakeChatModel(["I think so.", "I disagree."])
        alice = ChatAgent("alice", "You are Alice.", model, formatter=OpenAIMultiAgentFormatter(), memory=InMemoryMemory())
        bob = ChatAgent("bob", "You are Bob.", model, formatter=OpenAIMultiAgentFormatter())

        async with MsgHub([alice, bob], announcement=Msg(name="host", content="Will it rain?")):
            await alice()
            await bob()

        bob_prompt = model.requests[1]["messages"][1]["content"][0]["text"]
        assert "host: Will it rain?" in bob_prompt
        assert "alice: I think so." in bob_prompt
        assert [m.name for m in await alice.memory.get_memory()] == ["host", "alice", "bob"]
