"""Memory interface shared by agent memories."""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

from ..message import Msg


class MemoryBase(ABC):
    """Async store of the ``Msg`` history an agent formats into prompts."""

    @abstractmethod
    async def add(self, msgs: Union[Msg, List[Msg], None]) -> None:
        ...

    @abstractmethod
    async def get_memory(self, limit: Optional[int] = None) -> List[Msg]:
        """Stored messages, oldest first; ``limit`` keeps the most recent ones."""

    @abstractmethod
    async def delete(self, index: Union[int, List[int]]) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    @abstractmethod
    async def size(self) -> int:
        ...
