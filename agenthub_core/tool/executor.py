"""Batch execution of tool calls with timeout and retry."""

import asyncio
import logging
from typing import List, Optional

from ..message import ToolResultBlock, ToolUseBlock
from ..model.base import run_with_retry
from ..model.types import ExecutionConfig
from .toolkit import Toolkit

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Runs the tool calls of one model turn against a ``Toolkit``.

    Results come back in call order and always carry the id and name of the
    call they answer, whatever the tool returned.

    Usage:
        executor = ToolExecutor(toolkit)
        results = await executor.execute_all(response_msg.get_content_blocks(ToolUseBlock))
    """

    def __init__(self, toolkit: Toolkit):
        self.toolkit = toolkit

    async def execute(
        self, tool_call: ToolUseBlock, execution_config: Optional[ExecutionConfig] = None
    ) -> ToolResultBlock:
        try:
            result = await run_with_retry(
                lambda: self.toolkit.run_tool(tool_call),
                execution_config,
                f"Tool '{tool_call.name}'",
            )
        except asyncio.TimeoutError:
            timeout = execution_config.timeout if execution_config else None
            logger.warning(f"Tool '{tool_call.name}' timed out after {timeout}s")
            result = ToolResultBlock.error(f"Tool execution timeout after {timeout}s")
        except Exception as e:
            logger.warning(f"Tool call failed: {tool_call.name}: {e}")
            result = ToolResultBlock.error(f"Tool execution failed: {e}")
        return result.with_id_and_name(tool_call.id, tool_call.name)

    async def execute_all(
        self,
        tool_calls: List[ToolUseBlock],
        parallel: bool = True,
        execution_config: Optional[ExecutionConfig] = None,
    ) -> List[ToolResultBlock]:
        if not tool_calls:
            return []

        logger.debug(f"Executing {len(tool_calls)} tool calls (parallel={parallel})")
        if parallel:
            return list(
                await asyncio.gather(*(self.execute(call, execution_config) for call in tool_calls))
            )

        results = []
        for call in tool_calls:
            results.append(await self.execute(call, execution_config))
        return results
