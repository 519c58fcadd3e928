"""In-memory message history."""

import copy
import logging
from typing import List, Optional, Union

from ..message import Msg
from .base import MemoryBase

logger = logging.getLogger(__name__)


class InMemoryMemory(MemoryBase):
    """Keeps messages in a list.

    Messages are stored as given; adding a message whose id is already
    present is ignored unless ``allow_duplicates`` is set.

    Usage:
        memory = InMemoryMemory()
        await memory.add(Msg(name="user", content="Hello"))
        history = await memory.get_memory()
    """

    def __init__(self, allow_duplicates: bool = False):
        self.content: List[Msg] = []
        self.allow_duplicates = allow_duplicates

    async def add(self, msgs: Union[Msg, List[Msg], None]) -> None:
        if msgs is None:
            return
        if isinstance(msgs, Msg):
            msgs = [msgs]

        known_ids = {m.id for m in self.content}
        for msg in msgs:
            if msg is None:
                continue
            if not self.allow_duplicates and msg.id in known_ids:
                logger.debug(f"Skipping duplicate message {msg.id}")
                continue
            self.content.append(msg)
            known_ids.add(msg.id)

    async def get_memory(self, limit: Optional[int] = None) -> List[Msg]:
        if limit is not None and limit >= 0:
            return list(self.content[-limit:]) if limit else []
        return list(self.content)

    async def delete(self, index: Union[int, List[int]]) -> None:
        """Delete messages by position.

        Raises:
            IndexError: If any index is out of range
        """
        indexes = [index] if isinstance(index, int) else list(index)
        invalid = [i for i in indexes if not 0 <= i < len(self.content)]
        if invalid:
            raise IndexError(f"Memory indexes {invalid} out of range (size {len(self.content)})")
        for i in sorted(set(indexes), reverse=True):
            del self.content[i]

    async def clear(self) -> None:
        self.content = []

    async def size(self) -> int:
        return len(self.content)

    def state_dict(self) -> dict:
        return {"content": [m.to_dict() for m in self.content]}

    def load_state_dict(self, state: dict) -> None:
        self.content = [Msg.from_dict(copy.deepcopy(d)) for d in state.get("content", [])]
