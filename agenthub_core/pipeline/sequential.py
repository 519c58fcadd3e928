"""Sequential pipeline - each agent's reply is the next agent's input."""

import logging
from typing import List, Optional, Union

from ..agent import AgentBase
from ..message import Msg

logger = logging.getLogger(__name__)


async def sequential_pipeline(
    agents: List[AgentBase], msg: Union[Msg, List[Msg], None] = None
) -> Union[Msg, List[Msg], None]:
    """Run ``agents`` in order and return the last reply.

    With no agents the input is returned unchanged.
    """
    current = msg
    for agent in agents:
        logger.debug(f"Sequential pipeline step: {agent.name}")
        current = await agent(current)
    return current


class SequentialPipeline:
    """Reusable form of ``sequential_pipeline``.

    Usage:
        pipeline = SequentialPipeline([researcher, writer, reviewer])
        final = await pipeline(Msg(name="user", content="Write about tides"))
    """

    def __init__(self, agents: List[AgentBase]):
        self.agents = list(agents)

    async def __call__(self, msg: Union[Msg, List[Msg], None] = None) -> Optional[Msg]:
        return await sequential_pipeline(self.agents, msg)
