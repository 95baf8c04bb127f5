"""Shared fixtures for floaty tests."""

import json
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest


Answer = Tuple[int, Any]


def sequence(*answers: Answer) -> Callable[[httpx.Request], Answer]:
    """Answer successive requests to one route with the given responses, repeating the last."""
    remaining = list(answers)

    def answer(request: httpx.Request) -> Answer:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return answer


class FakePooler:
    """In-memory pooler service answering from a ``(method, path)`` route table.

    Unknown routes answer 404 with an empty body. Every request is recorded.
    """

    def __init__(self, routes: Dict[Tuple[str, str], Any]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, text="")
        if callable(answer):
            answer = answer(request)

        status, body = answer
        if isinstance(body, (dict, list)):
            return httpx.Response(status, text=json.dumps(body))
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sent(self, method: str, path: str) -> List[httpx.Request]:
        """Requests received for one route."""
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def fake_pooler():
    """Factory for ``FakePooler`` instances."""
    return FakePooler


@pytest.fixture
def answers():
    """Builder for a route answering successive requests differently."""
    return sequence
