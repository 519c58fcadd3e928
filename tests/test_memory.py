"""Tests for agent memories (in-memory and SQLite)."""

import pytest

from agenthub_core.memory import InMemoryMemory, SQLiteMemory, SQLiteMsgStore
from agenthub_core.message import Msg, MsgRole, TextBlock, ToolUseBlock


def msg(text, role=MsgRole.USER, name="user"):
    return Msg(name=name, content=text, role=role)


# -- InMemoryMemory ------------------------------------------------------------


class TestInMemoryMemory:
    async def test_add_and_get(self):
        memory = InMemoryMemory()
        await memory.add(msg("Hello"))
        await memory.add([msg("Hi", MsgRole.ASSISTANT, "bot"), None])
        items = await memory.get_memory()
        assert [m.get_text_content() for m in items] == ["Hello", "Hi"]
        assert await memory.size() == 2

    async def test_add_none_is_noop(self):
        memory = InMemoryMemory()
        await memory.add(None)
        assert await memory.size() == 0

    async def test_duplicate_ids_skipped(self):
        memory = InMemoryMemory()
        m = msg("once")
        await memory.add(m)
        await memory.add(m)
        assert await memory.size() == 1

    async def test_duplicates_allowed(self):
        memory = InMemoryMemory(allow_duplicates=True)
        m = msg("twice")
        await memory.add([m, m])
        assert await memory.size() == 2

    async def test_get_memory_with_limit(self):
        memory = InMemoryMemory()
        await memory.add([msg("msg1"), msg("msg2"), msg("msg3")])
        items = await memory.get_memory(limit=2)
        assert [m.get_text_content() for m in items] == ["msg2", "msg3"]
        assert await memory.get_memory(limit=0) == []

    async def test_get_memory_returns_copy(self):
        memory = InMemoryMemory()
        await memory.add(msg("a"))
        items = await memory.get_memory()
        items.append(msg("injected"))
        assert await memory.size() == 1

    async def test_delete(self):
        memory = InMemoryMemory()
        await memory.add([msg("a"), msg("b"), msg("c")])
        await memory.delete([0, 2])
        assert [m.get_text_content() for m in await memory.get_memory()] == ["b"]

    async def test_delete_invalid_index(self):
        memory = InMemoryMemory()
        await memory.add(msg("a"))
        with pytest.raises(IndexError):
            await memory.delete(5)
        assert await memory.size() == 1

    async def test_clear(self):
        memory = InMemoryMemory()
        await memory.add(msg("a"))
        await memory.clear()
        assert await memory.get_memory() == []

    async def test_state_dict_round_trip(self):
        memory = InMemoryMemory()
        await memory.add([msg("a"), msg("b", MsgRole.ASSISTANT, "bot")])
        restored = InMemoryMemory()
        restored.load_state_dict(memory.state_dict())
        assert await restored.get_memory() == await memory.get_memory()


# -- SQLiteMsgStore ------------------------------------------------------------


@pytest.fixture
def store(tmp_path):
    return SQLiteMsgStore(str(tmp_path / "nested" / "test.db"))


class TestSQLiteMsgStore:
    def test_get_or_create_session(self, store):
        session = store.get_or_create_session("s1")
        assert session["id"] == "s1"
        assert session["is_archived"] == 0
        assert session["title"] is None
        assert store.get_or_create_session("s1")["id"] == "s1"

    def test_add_and_get_msgs(self, store):
        tool_call = Msg(
            name="bot",
            role=MsgRole.ASSISTANT,
            content=[TextBlock("Checking"), ToolUseBlock(id="c1", name="search", input={"q": "x"})],
        )
        store.add_msgs("s1", [msg("Hello"), tool_call])
        msgs = store.get_msgs("s1")
        assert len(msgs) == 2
        assert msgs[0].get_text_content() == "Hello"
        assert msgs[1] == tool_call

    def test_get_msgs_with_limit(self, store):
        store.add_msgs("s1", [msg("msg1"), msg("msg2"), msg("msg3")])
        assert [m.get_text_content() for m in store.get_msgs("s1", limit=2)] == ["msg2", "msg3"]

    def test_title_from_first_user_message(self, store):
        store.add_msgs("s1", [msg("Hi", MsgRole.ASSISTANT, "bot"), msg("What's the weather?")])
        store.add_msgs("s1", [msg("Another question")])
        assert store.get_or_create_session("s1")["title"] == "What's the weather?"

    def test_long_title_truncated(self, store):
        store.add_msgs("s1", [msg("x" * 150)])
        assert store.get_or_create_session("s1")["title"] == "x" * 100 + "..."

    def test_archive_session(self, store):
        store.add_msgs("s1", [msg("Hello")])
        store.add_msgs("s2", [msg("Hi")])
        assert store.archive_session("s1") is True
        assert store.archive_session("s1") is False
        assert [s["id"] for s in store.get_active_sessions()] == ["s2"]
        assert store.get_message_count("s1") == 1

    def test_active_sessions_include_counts(self, store):
        store.add_msgs("s1", [msg("a"), msg("b")])
        sessions = store.get_active_sessions()
        assert sessions[0]["message_count"] == 2

    def test_clear_session(self, store):
        store.add_msgs("s1", [msg("a")])
        assert store.clear_session("s1") is True
        assert store.get_msgs("s1") == []
        assert store.clear_session("s1") is False

    def test_delete_msgs(self, store):
        a, b = msg("a"), msg("b")
        store.add_msgs("s1", [a, b])
        assert store.delete_msgs("s1", [a.id]) == 1
        assert [m.id for m in store.get_msgs("s1")] == [b.id]

    def test_sessions_isolated(self, store):
        store.add_msgs("s1", [msg("one")])
        store.add_msgs("s2", [msg("two")])
        assert [m.get_text_content() for m in store.get_msgs("s2")] == ["two"]


class TestSQLiteMemory:
    async def test_memory_interface(self, store):
        memory = SQLiteMemory(store, "chat-1")
        await memory.add(msg("Hello"))
        await memory.add([msg("Hi", MsgRole.ASSISTANT, "bot")])
        assert await memory.size() == 2
        assert [m.get_text_content() for m in await memory.get_memory(limit=1)] == ["Hi"]

    async def test_persists_across_instances(self, store):
        await SQLiteMemory(store, "chat-1").add(msg("remember me"))
        reopened = SQLiteMemory(store, "chat-1")
        assert [m.get_text_content() for m in await reopened.get_memory()] == ["remember me"]

    async def test_delete_by_index(self, store):
        memory = SQLiteMemory(store, "chat-1")
        await memory.add([msg("a"), msg("b"), msg("c")])
        await memory.delete(1)
        assert [m.get_text_content() for m in await memory.get_memory()] == ["a", "c"]
        with pytest.raises(IndexError):
            await memory.delete(10)

    async def test_clear_keeps_session(self, store):
        memory = SQLiteMemory(store, "chat-1")
        await memory.add(msg("a"))
        await memory.clear()
        assert await memory.size() == 0
        assert store.get_or_create_session("chat-1")["id"] == "chat-1"

    async def test_duplicate_ids_skipped(self, store):
        memory = SQLiteMemory(store, "chat-1")
        m = msg("once")
        await memory.add(m)
        await memory.add([m, m])
        assert await memory.size() == 1

    async def test_delete_removes_only_the_given_index(self, store):
        memory = SQLiteMemory(store, "chat-1", allow_duplicates=True)
        m = msg("twice")
        await memory.add([m, m, msg("other")])
        assert await memory.size() == 3

        await memory.delete(0)
        assert [x.get_text_content() for x in await memory.get_memory()] == ["twice", "other"]
