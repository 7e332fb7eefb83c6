"""Shared pytest fixtures."""

from __future__ import annotations

import copy

import pytest


class ScriptedClient:
    """Generation client double that replays canned responses and records each request."""

    def __init__(self, responses, repeat_last: bool = False) -> None:
        self._responses = list(responses)
        self._repeat_last = repeat_last
        self.calls: list[dict] = []

    def create(self, system, messages, tools=None):
        self.calls.append({"system": system, "messages": copy.deepcopy(messages), "tools": tools})
        if len(self._responses) > 1 or not self._repeat_last:
            return self._responses.pop(0)
        return self._responses[0]


@pytest.fixture
def scripted_client():
    def factory(*responses, repeat_last: bool = False) -> ScriptedClient:
        return ScriptedClient(responses, repeat_last=repeat_last)

    return factory


def text_response(text: str, stop_reason: str = "end_turn") -> dict:
    return {"stop_reason": stop_reason, "content": [{"type": "text", "text": text}]}


@pytest.fixture
def make_text_response():
    return text_response
