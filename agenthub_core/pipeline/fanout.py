"""Fanout pipeline - the same input to many agents, replies collected."""

import asyncio
import copy
import logging
from typing import List, Union

from ..agent import AgentBase
from ..exceptions import AgentErrorInfo, CompositeAgentError
from ..message import Msg

logger = logging.getLogger(__name__)


async def fanout_pipeline(
    agents: List[AgentBase],
    msg: Union[Msg, List[Msg], None] = None,
    enable_concurrent: bool = True,
) -> List[Msg]:
    """Send a deep copy of ``msg`` to every agent and return their replies.

    Replies are in agent order. Concurrent runs collect every failure into
    one ``CompositeAgentError``; sequential runs stop at the first error and
    re-raise it.
    """
    if not agents:
        return []

    if not enable_concurrent:
        replies = []
        for agent in agents:
            replies.append(await agent(copy.deepcopy(msg)))
        return replies

    outcomes = await asyncio.gather(
        *(agent(copy.deepcopy(msg)) for agent in agents),
        return_exceptions=True,
    )

    errors = [
        AgentErrorInfo(agent_id=agent.id, agent_name=agent.name, error=outcome)
        for agent, outcome in zip(agents, outcomes)
        if isinstance(outcome, BaseException)
    ]
    if errors:
        logger.error(f"{len(errors)} of {len(agents)} agents failed in fanout pipeline")
        raise CompositeAgentError("Multiple agent execution failures occurred", errors)
    return list(outcomes)


class FanoutPipeline:
    """Reusable form of ``fanout_pipeline``.

    Usage:
        pipeline = FanoutPipeline([optimist, pessimist, realist])
        opinions = await pipeline(Msg(name="user", content="Will it rain?"))
    """

    def __init__(self, agents: List[AgentBase], enable_concurrent: bool = True):
        self.agents = list(agents)
        self.enable_concurrent = enable_concurrent

    async def __call__(self, msg: Union[Msg, List[Msg], None] = None) -> List[Msg]:
        return await fanout_pipeline(self.agents, msg, self.enable_concurrent)
