"""MsgHub - broadcast replies between a group of agents.

Inside a hub, every reply an agent produces through ``__call__`` is observed
by all other participants, so a round-table conversation needs no explicit
message passing.

Usage:
    async with MsgHub([alice, bob, carol], announcement=Msg(name="host", content="Introduce yourselves")):
        await alice()
        await bob()
        await carol()
"""

import logging
import uuid
from typing import List, Optional, Union

from ..agent import AgentBase
from ..message import Msg

logger = logging.getLogger(__name__)


class MsgHub:
    """Async context manager wiring participants as each other's subscribers."""

    def __init__(
        self,
        participants: List[AgentBase],
        announcement: Union[Msg, List[Msg], None] = None,
        enable_auto_broadcast: bool = True,
        name: Optional[str] = None,
    ):
        if not participants:
            raise ValueError("MsgHub must have at least one participant")
        self.name = name or uuid.uuid4().hex
        self.participants: List[AgentBase] = list(participants)
        self.announcement = announcement
        self.enable_auto_broadcast = enable_auto_broadcast

    async def __aenter__(self) -> "MsgHub":
        self._reset_subscribers()
        if self.announcement is not None:
            await self.broadcast(self.announcement)
        logger.debug(f"Entered MsgHub '{self.name}' with {len(self.participants)} participants")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.enable_auto_broadcast:
            for agent in self.participants:
                agent.remove_subscribers(self.name)
        logger.debug(f"Exited MsgHub '{self.name}'")

    def _reset_subscribers(self) -> None:
        if not self.enable_auto_broadcast:
            return
        for agent in self.participants:
            agent.reset_subscribers(self.name, self.participants)

    def add(self, new_participant: Union[AgentBase, List[AgentBase]]) -> None:
        agents = new_participant if isinstance(new_participant, list) else [new_participant]
        for agent in agents:
            if agent not in self.participants:
                self.participants.append(agent)
        self._reset_subscribers()

    def delete(self, participant: Union[AgentBase, List[AgentBase]]) -> None:
        agents = participant if isinstance(participant, list) else [participant]
        for agent in agents:
            if agent in self.participants:
                self.participants.remove(agent)
                agent.remove_subscribers(self.name)
            else:
                logger.warning(f"Cannot find agent {agent.name} ({agent.id}) in MsgHub '{self.name}', skipping")
        self._reset_subscribers()

    async def broadcast(self, msg: Union[Msg, List[Msg]]) -> None:
        """Deliver ``msg`` to every participant's ``observe``."""
        msgs = msg if isinstance(msg, list) else [msg]
        for m in msgs:
            for agent in self.participants:
                await agent.observe(m)

    def set_auto_broadcast(self, enable: bool) -> None:
        self.enable_auto_broadcast = enable
        if enable:
            self._reset_subscribers()
        else:
            for agent in self.participants:
                agent.remove_subscribers(self.name)
