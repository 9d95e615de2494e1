"""Tests for the shapequery command line."""
import json
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from shapequery import __version__
from shapequery.cli import app
from shapequery.llm import MessageAPI

from .conftest import ReplayTransport, load_fixture

runner = CliRunner()


def replay_client(fixture, status_code=200):
    transport = ReplayTransport(load_fixture(fixture), status_code=status_code)
    return transport, lambda: MessageAPI("test-key", transport=transport)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_schema_prints_proto():
    result = runner.invoke(app, ["schema", "people"])
    assert result.exit_code == 0
    assert "message People {" in result.stdout
    assert "repeated Person people = 1;" in result.stdout


def test_unknown_shape_is_rejected():
    result = runner.invoke(app, ["schema", "planets"])
    assert result.exit_code != 0


def test_create_prints_reply():
    transport, factory = replay_client("hello_world.json")
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["create", "hello, world", "--temperature", "0"])

    assert result.exit_code == 0
    assert "Hello! How can I assist you today?" in result.stdout
    assert transport.sent_bodies[0]["temperature"] == 0.0


def test_create_rejects_bad_temperature():
    transport, factory = replay_client("hello_world.json")
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["create", "hello, world", "--temperature", "1.1"])

    assert result.exit_code == 1
    assert "InputError" in result.stdout
    assert transport.requests == []


def test_ask_prints_decoded_value():
    transport, factory = replay_client("person.json")
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["ask", "person", "return a random person"])

    assert result.exit_code == 0
    assert "Ada Lovelace" in result.stdout
    assert "message Person {" in transport.sent_bodies[0]["messages"][0]["content"]


def test_ask_without_text_reply_fails():
    _, factory = replay_client("tool_use.json")
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["ask", "person", "return a random person"])

    assert result.exit_code == 1
    assert "ResponseError" in result.stdout


def test_api_error_exit_code():
    _, factory = replay_client("overloaded_error.json", status_code=529)
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["create", "hi"])

    assert result.exit_code == 1
    assert "APIError" in result.stdout


def test_missing_key_is_reported(monkeypatch):
    from shapequery.config import get_config

    monkeypatch.delenv("ANTHROPIC_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    get_config.cache_clear()
    try:
        result = runner.invoke(app, ["create", "hi"])
    finally:
        get_config.cache_clear()

    assert result.exit_code == 1
    assert "ANTHROPIC_KEY" in result.stdout


def test_demo_runs_every_prompt():
    replies = {
        "return a random person": {"name": "Ada Lovelace"},
        "return a list of 3 random people": {"people": [{"name": "A"}, {"name": "B"}, {"name": "C"}]},
        "return all full moons in 2024 for Denver, Colorado": {"dates": ["2024-01-25", "2024-02-24"]},
    }
    seen = []

    def handler(request):
        prompt = json.loads(request.content)["messages"][-1]["content"]
        reply = next(v for k, v in replies.items() if prompt.endswith(k))
        seen.append(prompt)
        body = load_fixture("person.json")
        body["content"][0]["text"] = json.dumps(reply)
        return httpx.Response(200, json=body)

    factory = lambda: MessageAPI("test-key", transport=httpx.MockTransport(handler))
    with patch("shapequery.cli._build_client", factory):
        result = runner.invoke(app, ["demo"])

    assert result.exit_code == 0
    assert len(seen) == 3
    assert "2024-02-24" in result.stdout
