"""Text renderings of plans, specs and review context."""

from __future__ import annotations

from .models import AgentStep, RequirementSpec, SearchStrategy


def _bullets(items: list[str]) -> list[str]:
    return [f"- {item}" for item in items]


def format_strategy(strategy: SearchStrategy) -> str:
    """Render a strategy for a ``plan_thought`` event."""
    lines = ["Search Strategy:", ""]
    for i, q in enumerate(strategy.queries, 1):
        lines.extend([
            f'{i}. Query: "{q.query}"',
            f"   Purpose: {q.purpose}",
            f"   Expected: {q.expected_info}",
            "",
        ])

    if strategy.information_gaps:
        lines.append("Information Gaps:")
        lines.extend(_bullets(strategy.information_gaps))

    lines.extend(["", f"Initial Confidence: {strategy.confidence_level.value}"])
    return "\n".join(lines)


def format_specification(spec: RequirementSpec, strategy: SearchStrategy) -> str:
    """Render the requirement spec (and strategy, when executing) after planning."""
    lines = [
        "Requirement Specification:",
        "",
        f"Objective: {spec.objective}",
        f"Deliverable: {spec.deliverable}",
        f"Needs Exec Agent: {'Yes' if spec.needs_execution else 'No'}",
        f"Exec Decision Reason: {spec.execution_reason}",
        "",
    ]

    for title, items in (
        ("Constraints", spec.constraints),
        ("Acceptance Criteria", spec.acceptance_criteria),
        ("Assumptions", spec.assumptions),
    ):
        if items:
            lines.append(f"{title}:")
            lines.extend(_bullets(items))
            lines.append("")

    if spec.needs_execution:
        lines.append(format_strategy(strategy))
    elif spec.information_gaps:
        lines.append("Information Gaps:")
        lines.extend(_bullets(spec.information_gaps))

    return "\n".join(lines).strip()


def format_spec_context(spec: RequirementSpec | None) -> str:
    """Compact spec summary used in the synthesis prompt."""
    if spec is None:
        return "Requirement Spec: Not available"

    def joined(items: list[str]) -> str:
        return "; ".join(items) or "None"

    decision = "Exec required" if spec.needs_execution else "Plan-only"
    return "\n".join([
        "Requirement Spec:",
        f"- Objective: {spec.objective}",
        f"- Deliverable: {spec.deliverable}",
        f"- Constraints: {joined(spec.constraints)}",
        f"- Assumptions: {joined(spec.assumptions)}",
        f"- Acceptance Criteria: {joined(spec.acceptance_criteria)}",
        f"- Information Gaps: {joined(spec.information_gaps)}",
        f"- Exec Decision: {decision} ({spec.execution_reason})",
    ])


def format_review_context(
    strategy: SearchStrategy,
    collected_info: str,
    plan_history: list[AgentStep],
) -> str:
    """Build the Reviewer's user message."""
    lines = ["Original Strategy:"]
    for i, q in enumerate(strategy.queries, 1):
        lines.extend([
            f'- Query {i}: "{q.query}"',
            f"  Purpose: {q.purpose}",
            f"  Expected: {q.expected_info}",
            "",
        ])

    lines.extend(["", "Information Gaps Identified:"])
    lines.extend(_bullets(strategy.information_gaps))

    lines.extend(["", "", "Collected Information:", collected_info])

    lines.extend(["", "", "Plan Agent Reasoning History:"])
    for step in plan_history:
        lines.extend([f"[{step.step_type.value.upper()}] {step.content}", ""])

    lines.extend([
        "",
        "Review this information critically and provide your assessment "
        "using the submit_review tool.",
    ])
    return "\n".join(lines)


def format_plan_history(plan_history: list[AgentStep]) -> str:
    return "\n\n".join(step.content for step in plan_history)
