"""
Executor: bounded tool-calling loop over the planned queries.

Every turn makes progress on the plan while planned queries remain: when the
model proposes nothing useful, or its call fails, the Executor searches the
next pending query itself ("fallback search").
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, AsyncIterator, Union

from ..llm.protocols import Message, ToolCall
from ..tools.definitions import ToolResult, ToolType, get_tool_descriptions, get_tool_schema
from .models import AgentStep, AgentType, ExecAgentResult, RunContext, SearchQuery, SearchStrategy, StepType
from .prompts import EXEC_SYSTEM_PROMPT

if TYPE_CHECKING:
    from ..config.loader import ExecutorConfig
    from ..llm.protocols import LanguageModel
    from ..tools.executor import ToolExecutorProtocol

logger = logging.getLogger(__name__)

ExecutorItem = Union[AgentStep, ExecAgentResult]


def _step(step_type: StepType, content: str) -> AgentStep:
    return AgentStep(agent=AgentType.EXEC, step_type=step_type, content=content)


def _task_prompt(pending: list[SearchQuery], context: RunContext) -> str:
    lines = ["Execute the following search strategy. Call web_search once for each query.", ""]
    for i, q in enumerate(pending, 1):
        lines.append(f'{i}. "{q.query}" - Purpose: {q.purpose} - Expected: {q.expected_info}')

    if context.executed_queries:
        lines.extend(["", "Already executed in earlier rounds (do not repeat):"])
        lines.extend(f'- "{q}"' for q in sorted(context.executed_queries))
    return "\n".join(lines)


class _Invocation:
    """Mutable state of one Executor invocation."""

    def __init__(self, strategy: SearchStrategy, context: RunContext):
        self.context = context
        self.result = ExecAgentResult()
        self.messages: list[Message] = []
        self.fallback_count = 0
        self.advanced = False

        # Planned queries not yet executed, in order, without repeats
        self.planned: dict[str, SearchQuery] = {}
        for q in strategy.queries:
            key = RunContext.key(q.query)
            if key and key not in self.planned and not context.is_executed(key):
                self.planned[key] = q

    @property
    def pending(self) -> list[SearchQuery]:
        return [q for key, q in self.planned.items() if not self.context.is_executed(key)]

    def next_pending(self) -> SearchQuery | None:
        pending = self.pending
        return pending[0] if pending else None

    def record(self, call: ToolCall, content: str, is_error: bool) -> None:
        if call.name == ToolType.WEB_SEARCH.value:
            query = str(call.arguments.get("query") or "").strip()
            if not query:
                return
            if query in self.planned and not self.context.is_executed(query):
                self.advanced = True
            self.context.mark_executed(query)
            self.result.queries_executed.append(query)
            if is_error:
                self.result.collected_info += f'\n\n[Error in search: "{query}"]\n{content}'
            else:
                self.result.successful_searches += 1
                self.result.collected_info += f'\n\n[From search: "{query}"]\n{content}'
        elif call.name == ToolType.READ.value and not is_error:
            path = call.arguments.get("path")
            self.result.collected_info += f'\n\n[From read: "{path}"]\n{content}'


class Executor:
    """
    Executes the not-yet-executed queries of a strategy.

    ``run`` is an async generator: it yields each AgentStep as it happens
    and, last, the ExecAgentResult of the invocation.
    """

    def __init__(
        self,
        llm: LanguageModel,
        tools: ToolExecutorProtocol,
        config: ExecutorConfig | None = None,
    ):
        """
        Initialize the Executor.

        Args:
            llm: Language model driving the tool loop
            tools: Executor for web_search, read and write
            config: Executor configuration
        """
        self.llm = llm
        self.tools = tools

        if config is None:
            from ..config.loader import ExecutorConfig
            config = ExecutorConfig()

        self.max_turns = config.max_turns
        self.temperature = config.temperature
        self.system_prompt = EXEC_SYSTEM_PROMPT.format(tools=get_tool_descriptions())

    async def run(self, strategy: SearchStrategy, context: RunContext) -> AsyncIterator[ExecutorItem]:
        """
        Execute a strategy.

        Args:
            strategy: Strategy to execute; only read, never modified
            context: Dedup state of the run; executed queries are added to it

        Yields:
            AgentStep objects in order, then one ExecAgentResult
        """
        inv = _Invocation(strategy, context)
        pending = inv.pending

        if not pending:
            logger.info("No pending queries, nothing to execute")
            yield inv.result
            return

        logger.info(f"Executing {len(pending)} pending queries (max {self.max_turns} turns)")
        yield _step(
            StepType.THOUGHT,
            "Executing planned searches:\n" + "\n".join(f'- "{q.query}"' for q in pending),
        )
        inv.messages.append(Message.user(_task_prompt(pending, context)))

        turn = 0
        while inv.next_pending() is not None and turn < self.max_turns:
            turn += 1
            inv.advanced = False

            try:
                response = await self.llm.call(
                    system_prompt=self.system_prompt,
                    messages=inv.messages,
                    tools=get_tool_schema(),
                    tool_choice="auto",
                    temperature=self.temperature,
                )
            except Exception as e:
                logger.warning(f"Executor model call failed on turn {turn}: {e}")
                async for step in self._fallback(inv, f"Model call failed ({e})."):
                    yield step
                continue

            if response.content:
                yield _step(StepType.THOUGHT, response.content)

            if not response.tool_calls:
                logger.debug(f"Turn {turn}: no tool calls")
                async for step in self._fallback(inv, "No tool call proposed.", response.content):
                    yield step
                continue

            inv.messages.append(Message.assistant(response.content, response.tool_calls))
            for call in response.tool_calls:
                async for step in self._execute_call(inv, call):
                    yield step

            if not inv.advanced and inv.next_pending() is not None:
                async for step in self._fallback(inv, "No planned query advanced this turn."):
                    yield step

        remaining = inv.pending
        if remaining:
            logger.warning(f"Turn cap reached with {len(remaining)} planned queries unexecuted")

        logger.info(
            f"Executor finished: {len(inv.result.queries_executed)} executed, "
            f"{inv.result.successful_searches} successful, {turn} turns"
        )
        yield inv.result

    async def _execute_call(self, inv: _Invocation, call: ToolCall) -> AsyncIterator[AgentStep]:
        if call.name == ToolType.WEB_SEARCH.value:
            query = str(call.arguments.get("query") or "").strip()
            if query and inv.context.is_executed(query):
                yield _step(StepType.THOUGHT, f'Skipping already executed search: "{query}"')
                inv.messages.append(
                    Message.tool(call.id, call.name, "Skipped: this query was already executed in this run.")
                )
                return

        yield _step(
            StepType.ACTION,
            f"{call.name}({json.dumps(call.arguments, ensure_ascii=False)})",
        )
        try:
            result = await self.tools.execute(
                call.name,
                call.arguments,
                history=inv.context.search_history,
            )
        except Exception as e:
            logger.error(f"Tool {call.name} raised: {e}")
            result = ToolResult(content=f"Error executing {call.name}: {e}", is_error=True)
        yield _step(StepType.OBSERVATION, result.content)

        inv.messages.append(Message.tool(call.id, call.name, result.content))
        inv.record(call, result.content, result.is_error)

    async def _fallback(
        self,
        inv: _Invocation,
        reason: str,
        content: str | None = None,
    ) -> AsyncIterator[AgentStep]:
        """Search the next pending planned query through a synthetic tool call."""
        query = inv.next_pending()
        if query is None:
            return

        inv.fallback_count += 1
        call = ToolCall(
            id=f"fallback-{inv.fallback_count}",
            name=ToolType.WEB_SEARCH.value,
            arguments={"query": query.query},
        )
        logger.info(f'Fallback search: "{query.query}"')
        yield _step(StepType.THOUGHT, f'{reason} Running fallback search: "{query.query}"')

        inv.messages.append(Message.assistant(content, [call]))
        async for step in self._execute_call(inv, call):
            yield step
