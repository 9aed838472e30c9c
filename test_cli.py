"""
CLI Tests

Runs the typer app against the offline "test" profile.
"""

import json

from typer.testing import CliRunner

from tandem.cli import app, render_text
from tandem.orchestration import EventType, StreamEvent

runner = CliRunner()


def test_ask_sse_output():
    result = runner.invoke(app, ["ask", "What is the capital of France?", "--profile", "test", "--format", "sse"])

    print(result.stdout)
    assert result.exit_code == 0
    assert result.stdout.startswith("data: ")
    assert result.stdout.endswith("data: [DONE]\n\n")

    frames = [f for f in result.stdout.split("\n\n") if f]
    assert json.loads(frames[0][len("data: "):]) == {
        "type": "phase",
        "content": "Planning Phase",
        "phase": "Planning",
    }
    assert json.loads(frames[-2][len("data: "):])["type"] == "final_answer"


def test_ask_json_output():
    result = runner.invoke(app, ["ask", "What is HTTP/3?", "-p", "test", "-f", "json"])

    assert result.exit_code == 0
    events = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
    assert events[-1] == {
        "type": "final_answer",
        "content": "[Mock answer based on the collected information]",
        "agent": "plan",
    }


def test_ask_text_output():
    result = runner.invoke(app, ["ask", "What is HTTP/3?", "--profile", "test"])

    assert result.exit_code == 0
    assert "=== Planning Phase ===" in result.stdout
    assert "[review] Confidence Score: 80/100" in result.stdout
    assert "Final Answer:\n[Mock answer based on the collected information]" in result.stdout


def test_ask_rejects_bad_input():
    result = runner.invoke(app, ["ask", "anything", "--format", "xml"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["ask", "anything", "--profile", "nope"])
    assert result.exit_code == 1


def test_profiles_command():
    result = runner.invoke(app, ["profiles"])

    assert result.exit_code == 0
    assert "Available profiles:" in result.stdout
    for name in ("default", "fast", "test"):
        assert f"  {name}\n" in result.stdout
    assert "LLM: mock (default model)" in result.stdout


def test_render_text():
    assert render_text(StreamEvent.phase_change("Review Phase", "Review")) == "\n=== Review Phase ==="
    assert render_text(StreamEvent.error("boom")) == "[error] boom"
    assert render_text(StreamEvent.final_answer("42")) == "\nFinal Answer:\n42"
    assert render_text(StreamEvent(type=EventType.OBSERVATION, content="ok")) == "[observation] ok"
