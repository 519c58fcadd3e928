"""Example: Multi-Agent Debate with MsgHub

This example demonstrates how to:
1. Give several agents a multi-agent formatter so they see each other by name
2. Let them talk in a MsgHub, where every reply is broadcast automatically
3. Collect independent opinions with a fanout pipeline
4. Persist one agent's memory in SQLite across runs

Usage:
    export DASHSCOPE_API_KEY="your-key"
    python examples/multi_agent_debate.py
"""

import asyncio
import logging
import os

from agenthub_core import (
    ChatAgent,
    DashScopeChatModel,
    DashScopeMultiAgentFormatter,
    Msg,
    MsgHub,
    SQLiteMemory,
    SQLiteMsgStore,
    fanout_pipeline,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

TOPIC = "Should cities replace cars with bicycles downtown?"


def build_agents(model):
    store = SQLiteMsgStore("data/debate.db")
    return [
        ChatAgent(
            "Optimist",
            "You are Optimist. Argue for the proposal in two sentences.",
            model,
            formatter=DashScopeMultiAgentFormatter(),
            memory=SQLiteMemory(store, session_id="debate-optimist"),
        ),
        ChatAgent(
            "Sceptic",
            "You are Sceptic. Point out practical problems in two sentences.",
            model,
            formatter=DashScopeMultiAgentFormatter(),
        ),
        ChatAgent(
            "Moderator",
            "You are Moderator. Summarise the discussion fairly in three sentences.",
            model,
            formatter=DashScopeMultiAgentFormatter(),
        ),
    ]


async def main():
    if not os.environ.get("DASHSCOPE_API_KEY"):
        print("⚠️  Warning: DASHSCOPE_API_KEY not set!")
        return

    model = DashScopeChatModel("qwen-plus")
    optimist, sceptic, moderator = build_agents(model)

    # Round table: every reply is observed by the other participants
    announcement = Msg(name="host", content=f"Today's topic: {TOPIC}")
    async with MsgHub([optimist, sceptic, moderator], announcement=announcement):
        for _ in range(2):
            await optimist()
            await sceptic()
        summary = await moderator()

    print(f"\n📝 Moderator: {summary.get_text_content()}\n")

    # Independent opinions: each agent gets its own copy of the question
    question = Msg(name="host", content="In one word, yes or no?")
    votes = await fanout_pipeline([optimist, sceptic], question)
    for vote in votes:
        print(f"🗳️  {vote.name}: {vote.get_text_content()}")

    for agent in (optimist, sceptic, moderator):
        print(f"{agent.name}: {agent.usage.requests} requests, {agent.usage.total_tokens} tokens")


if __name__ == "__main__":
    asyncio.run(main())
