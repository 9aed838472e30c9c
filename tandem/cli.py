"""Command-line interface for the question-answering agent."""

import asyncio
from typing import Annotated

import typer

from .config.loader import load_config, load_config_from_yaml, list_profiles, DEFAULT_CONFIG_PATH
from .config.factory import create_from_profile
from .exceptions import ConfigError
from .orchestration.events import EventType, StreamEvent, encode_sse, END_OF_STREAM

app = typer.Typer(
    name="tandem",
    help="Answer questions with a planner/executor agent pair.",
    add_completion=False,
)

OUTPUT_FORMATS = ("text", "json", "sse")

_TEXT_LABELS = {
    EventType.PLAN_THOUGHT: "[plan]",
    EventType.PLAN_ACTION: "[plan:action]",
    EventType.EXEC_THOUGHT: "[exec]",
    EventType.EXEC_ACTION: "[exec:action]",
    EventType.OBSERVATION: "[observation]",
    EventType.REVIEW: "[review]",
    EventType.ERROR: "[error]",
}


def render_text(event: StreamEvent) -> str:
    """Render one event for a terminal."""
    if event.type == EventType.PHASE:
        return f"\n=== {event.content} ==="
    if event.type == EventType.FINAL_ANSWER:
        return f"\nFinal Answer:\n{event.content}"
    return f"{_TEXT_LABELS[event.type]} {event.content}"


@app.command()
def ask(
    question: Annotated[str, typer.Argument(help="Question to answer")],
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile (default: TANDEM_PROFILE or 'default')"),
    ] = None,
    max_iterations: Annotated[
        int,
        typer.Option("--max-iterations", "-i", help="Maximum execution/review rounds"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text, json or sse"),
    ] = "text",
):
    """
    Answer a question, streaming the agents' reasoning.

    Examples:

        # Stream the run as readable text
        tandem ask "How do I cancel an asyncio task group?"

        # Offline run with the mock backends
        tandem ask "What is the capital of France?" --profile test

        # One JSON object per event
        tandem ask "Compare httpx and aiohttp" --format json

        # Server-sent-event framing, ending with data: [DONE]
        tandem ask "Latest Python release" --format sse
    """
    if output_format not in OUTPUT_FORMATS:
        typer.echo(f"Error: Format must be one of: {', '.join(OUTPUT_FORMATS)}", err=True)
        raise typer.Exit(1)

    try:
        config = load_config(profile)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1)

    try:
        failed = asyncio.run(_ask_async(question, config, max_iterations, output_format))
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if failed:
        raise typer.Exit(1)


async def _ask_async(question, config, max_iterations, output_format) -> bool:
    """Run the coordinator and print its events. Returns True if the run failed."""
    llm, tools, coordinator = create_from_profile(config)
    last: StreamEvent | None = None

    async with llm, tools:
        async for event in coordinator.run(question, max_iterations=max_iterations):
            last = event
            if output_format == "json":
                typer.echo(event.model_dump_json(exclude_none=True))
            elif output_format == "sse":
                typer.echo(encode_sse(event), nl=False)
            else:
                typer.echo(render_text(event))

    if output_format == "sse":
        typer.echo(encode_sse(END_OF_STREAM), nl=False)

    return last is None or last.type == EventType.ERROR


@app.command()
def profiles():
    """List available configuration profiles."""
    names = list_profiles()
    if not names:
        typer.echo(f"No profiles found in {DEFAULT_CONFIG_PATH}")
        return

    typer.echo("Available profiles:\n")
    for name in names:
        profile = load_config_from_yaml(DEFAULT_CONFIG_PATH, name)
        typer.echo(f"  {name}")
        typer.echo(f"    LLM: {profile.llm.backend} ({profile.llm.model or 'default model'})")
        typer.echo(f"    Search: {profile.search.backend}")
        typer.echo(f"    Max iterations: {profile.coordinator.max_iterations}")
        typer.echo()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
