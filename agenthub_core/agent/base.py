"""Agent contract and a single-call chat agent.

``AgentBase`` is what pipelines and ``MsgHub`` talk to: agents receive
messages with ``observe``, produce them with ``reply`` and, when called,
broadcast their reply to the other members of every hub they are in.
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union

from agents import Usage

from ..formatter.base import FormatterBase
from ..memory import InMemoryMemory, MemoryBase
from ..message import Msg, MsgRole, TextBlock
from ..model.base import ChatModelBase
from ..model.types import GenerateOptions

logger = logging.getLogger(__name__)


class AgentBase(ABC):
    """Base class for agents taking part in pipelines and hubs.

    Subclasses implement ``reply``. ``__call__`` runs ``reply`` and forwards
    the result to hub subscribers via their ``observe``.
    """

    def __init__(self, name: str, memory: Optional[MemoryBase] = None):
        self.name = name
        self.id = uuid.uuid4().hex
        self.memory = memory if memory is not None else InMemoryMemory()
        # hub name -> agents to notify
        self._subscribers: Dict[str, List["AgentBase"]] = {}

    async def observe(self, msg: Union[Msg, List[Msg], None]) -> None:
        """Receive messages without replying."""
        await self.memory.add(msg)

    @abstractmethod
    async def reply(self, msg: Union[Msg, List[Msg], None] = None) -> Msg:
        ...

    async def __call__(self, msg: Union[Msg, List[Msg], None] = None) -> Msg:
        reply = await self.reply(msg)
        await self._broadcast_to_subscribers(reply)
        return reply

    async def _broadcast_to_subscribers(self, msg: Optional[Msg]) -> None:
        if msg is None:
            return
        for hub_name, subscribers in self._subscribers.items():
            for subscriber in subscribers:
                logger.debug(f"{self.name} -> {subscriber.name} via hub '{hub_name}'")
                await subscriber.observe(msg)

    def reset_subscribers(self, hub_name: str, agents: List["AgentBase"]) -> None:
        """Subscribe every agent in ``agents`` except this one."""
        self._subscribers[hub_name] = [a for a in agents if a is not self]

    def remove_subscribers(self, hub_name: str) -> None:
        if self._subscribers.pop(hub_name, None) is None:
            logger.debug(f"{self.name} has no subscribers for hub '{hub_name}'")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, id={self.id!r})"


class ChatAgent(AgentBase):
    """Agent that answers with exactly one model call per reply.

    The prompt is the system prompt followed by the whole memory. Tool calls
    returned by the model are kept in the reply but not executed.

    Usage:
        agent = ChatAgent(
            name="assistant",
            sys_prompt="You are a helpful assistant.",
            model=OpenAIChatModel("gpt-4o-mini"),
        )
        reply = await agent(Msg(name="user", content="Hello!"))
    """

    def __init__(
        self,
        name: str,
        sys_prompt: str,
        model: ChatModelBase,
        formatter: Optional[FormatterBase] = None,
        memory: Optional[MemoryBase] = None,
        options: Optional[GenerateOptions] = None,
    ):
        super().__init__(name, memory)
        self.sys_prompt = sys_prompt
        if formatter is not None:
            model = copy.copy(model)
            model.formatter = formatter
        self.model = model
        self.options = options
        self.usage = Usage()

    async def reply(self, msg: Union[Msg, List[Msg], None] = None) -> Msg:
        await self.memory.add(msg)

        prompt = [Msg(name="system", content=self.sys_prompt, role=MsgRole.SYSTEM)]
        prompt.extend(await self.memory.get_memory())

        response = await self.model(prompt, options=self.options)
        if response.usage:
            self.usage.add(
                Usage(
                    requests=1,
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                    total_tokens=response.usage.total_tokens,
                )
            )

        content = list(response.content) or [TextBlock("")]
        reply = Msg(name=self.name, content=content, role=MsgRole.ASSISTANT)
        await self.memory.add(reply)
        logger.info(f"{self.name} replied ({self.usage.requests} requests, {self.usage.total_tokens} tokens total)")
        return reply
