# tests/conftest.py
"""Shared fixtures: recorded API responses replayed through httpx.MockTransport."""
import json
from pathlib import Path

import httpx
import pytest

from shapequery.llm import MessageAPI

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES / name).read_text())


class ReplayTransport(httpx.MockTransport):
    """Answer every request with one canned response and keep the requests."""

    def __init__(self, body, status_code: int = 200):
        self.requests = []
        self.body = body
        self.status_code = status_code
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def sent_bodies(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def replay():
    """Factory: replay("hello_world.json") -> (MessageAPI, ReplayTransport)."""

    def _make(fixture=None, status_code: int = 200, body=None, **client_kwargs):
        if fixture is not None:
            body = load_fixture(fixture)
        transport = ReplayTransport(body, status_code=status_code)
        api = MessageAPI("test-key", transport=transport, **client_kwargs)
        return api, transport

    return _make
