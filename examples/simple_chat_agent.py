"""Example: Simple Tool-Using Chat Loop

A minimal example of driving a chat model with tools using agenthub_core.
Fork this file as a starting point for your own agents.

Usage:
    export OPENAI_API_KEY="your-key"
    python examples/simple_chat_agent.py

    # or a local model
    python examples/simple_chat_agent.py --ollama llama3.1
"""

import asyncio
import logging
import os
import sys
from datetime import datetime

from agenthub_core import (
    InMemoryMemory,
    Msg,
    MsgRole,
    OllamaChatModel,
    OpenAIChatModel,
    ToolExecutor,
    Toolkit,
    ToolUseBlock,
)
from agenthub_core.model.types import ExecutionConfig, GenerateOptions

logging.basicConfig(level=logging.WARNING)

SYSTEM_PROMPT = """You are a friendly and helpful AI assistant.

You have access to tools that let you:
- Get the current time
- Perform mathematical calculations

Always be helpful, concise, and friendly!
"""

MAX_TOOL_ROUNDS = 5


# =============================================================================
# Step 1: Define Tools
# =============================================================================

toolkit = Toolkit()


@toolkit.tool
async def get_current_time() -> dict:
    """Get the current date and time in ISO format."""
    return {"current_time": datetime.now().isoformat(), "timezone": "local"}


@toolkit.tool
def calculate(expression: str) -> str:
    """Evaluate a basic arithmetic expression.

    Args:
        expression: A mathematical expression like "2 + 2" or "10 * 5"
    """
    allowed_chars = set("0123456789+-*/(). ")
    if not all(c in allowed_chars for c in expression):
        return "Invalid characters in expression"
    return str(eval(expression))  # Only safe because we validated input


# =============================================================================
# Step 2: Pick a Model
# =============================================================================

def build_model():
    if len(sys.argv) > 2 and sys.argv[1] == "--ollama":
        return OllamaChatModel(sys.argv[2])
    if not os.environ.get("OPENAI_API_KEY"):
        print("⚠️  Warning: OPENAI_API_KEY not set!")
        print("Run: export OPENAI_API_KEY='your-key'")
        sys.exit(1)
    return OpenAIChatModel(
        "gpt-4o-mini",
        default_options=GenerateOptions(
            temperature=0.2,
            execution_config=ExecutionConfig(timeout=60, max_attempts=3),
        ),
    )


# =============================================================================
# Step 3: Run the Loop
# =============================================================================

async def answer(model, executor: ToolExecutor, memory: InMemoryMemory) -> Msg:
    """Call the model until it stops requesting tools."""
    system = Msg(name="system", content=SYSTEM_PROMPT, role=MsgRole.SYSTEM)

    for _ in range(MAX_TOOL_ROUNDS):
        response = await model([system] + await memory.get_memory(), tools=toolkit.get_tool_schemas())
        reply = response.to_msg("assistant")
        await memory.add(reply)

        tool_calls = reply.get_content_blocks(ToolUseBlock)
        if not tool_calls:
            return reply

        results = await executor.execute_all(tool_calls)
        await memory.add(Msg(name="system", content=results, role=MsgRole.SYSTEM))

    return Msg(name="assistant", content="Sorry, I got stuck calling tools.", role=MsgRole.ASSISTANT)


async def main():
    model = build_model()
    executor = ToolExecutor(toolkit)
    memory = InMemoryMemory()

    print("=" * 60)
    print("🤖 Simple Chat Agent")
    print("=" * 60)
    print("Type 'quit' to exit, 'history' to see conversation history")
    print()

    while True:
        user_input = input("You: ").strip()
        if not user_input:
            continue
        if user_input.lower() == "quit":
            print("Goodbye! 👋")
            break
        if user_input.lower() == "history":
            history = await memory.get_memory()
            print(f"\n📜 Conversation History ({len(history)} messages):")
            for i, msg in enumerate(history, 1):
                print(f"  {i}. [{msg.role.value}] {msg.get_text_content()[:100]}")
            print()
            continue

        await memory.add(Msg(name="user", content=user_input, role=MsgRole.USER))
        try:
            reply = await answer(model, executor, memory)
            print(f"\n🤖 Assistant: {reply.get_text_content()}\n")
        except Exception as e:
            print(f"\n❌ Error: {e}\n")


if __name__ == "__main__":
    asyncio.run(main())
