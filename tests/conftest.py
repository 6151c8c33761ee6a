"""Shared pytest fixtures for the autotranslate test suite.

Provides:
  - fake_clock: monotonic clock + awaitable sleep that advances it
  - deepl_reply: builds a DeepL-shaped httpx.Response
  - mock_client: httpx.AsyncClient over httpx.MockTransport, recording requests
  - scripted_dispatcher: in-process dispatcher returning scripted responses
  - make_options: TranslationOptions factory with test-friendly defaults

No test touches the network.
"""

from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from autotranslate.provider.markers import MarkerSet
from autotranslate.translation.translator import TranslationOptions


class FakeClock:
    """Clock whose time only moves when sleep() is awaited."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Wraps a handler, keeps every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def sent_texts(self) -> List[str]:
        return [json.loads(request.content)["text"][0] for request in self.requests]


class ScriptedDispatcher:
    """Stands in for RateLimitedDispatcher: `responder(wire_text, markers) -> str`."""

    def __init__(self, responder: Callable[[str, MarkerSet], str]):
        self.markers = MarkerSet("0badc0de")
        self.responder = responder
        self.sent: List[str] = []

    async def send(self, wire_text: str) -> str:
        self.sent.append(wire_text)
        return self.responder(wire_text, self.markers)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def deepl_reply() -> Callable[[str], httpx.Response]:
    def reply(text: str, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, json={"translations": [{"detected_source_language": "KO", "text": text}]})
    return reply


@pytest.fixture
def mock_client():
    """Factory: mock_client(handler) -> (httpx.AsyncClient, RecordingTransport)."""
    def build(handler: Callable[[httpx.Request], httpx.Response]):
        recorder = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        return client, recorder
    return build


@pytest.fixture
def scripted_dispatcher():
    return ScriptedDispatcher


@pytest.fixture
def make_options():
    def build(**overrides) -> TranslationOptions:
        values = dict(source_language="ko", target_language="en")
        values.update(overrides)
        return TranslationOptions(**values)
    return build
