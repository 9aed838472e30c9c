"""Final answer synthesis."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..llm.protocols import Message
from .formatting import format_plan_history, format_spec_context
from .models import AgentStep, RequirementSpec
from .parsing import extract_final_answer
from .prompts import SYNTHESIS_SYSTEM_PROMPT

if TYPE_CHECKING:
    from ..llm.protocols import LanguageModel

logger = logging.getLogger(__name__)


async def synthesize_answer(
    llm: LanguageModel,
    user_message: str,
    collected_info: str,
    plan_history: list[AgentStep],
    spec: RequirementSpec | None = None,
) -> str:
    """
    Produce the final answer from everything the run collected.

    Never raises: a failed model call yields an error string instead, so a
    run that reached synthesis always ends with some answer text.
    """
    prompt = "\n".join([
        f"Original Question: {user_message}",
        "",
        format_spec_context(spec),
        "",
        "Collected Information:",
        collected_info,
        "",
        "Plan Agent Reasoning:",
        format_plan_history(plan_history),
        "",
        "Provide a final answer based on this information.",
    ])

    try:
        response = await llm.call(
            system_prompt=SYNTHESIS_SYSTEM_PROMPT,
            messages=[Message.user(prompt)],
        )
    except Exception as e:
        logger.error(f"Answer synthesis failed: {e}")
        return f"Error generating final answer: {e}"

    answer = extract_final_answer(response.content or "")
    logger.info(f"Synthesized answer ({len(answer)} chars)")
    return answer
