"""Shared fixtures: an in-process fake of the back-office API."""

import inspect

import httpx
import pytest

from posadmin.api.client import SessionClient
from posadmin.models.user import CredentialPair
from posadmin.storage.state import StateStore

API = "http://pos.test"

EXPIRED_BODY = {
    "error": "TOKEN_EXPIRED",
    "code": "TOKEN_EXPIRED",
    "message": "Session has expired. Please log in again.",
}
INVALID_BODY = {
    "error": "INVALID_TOKEN",
    "code": "INVALID_TOKEN",
    "message": "Invalid session. Please log in again.",
}

OLD_PAIR = CredentialPair(access_token="old", refresh_token="old-r")


def bearer(request: httpx.Request) -> str:
    return request.headers.get("authorization", "")


class FakeApi:
    """Routes requests by ``(method, path)`` and records every call."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.routes = {}

    def route(self, method, path, handler):
        self.routes[(method, path)] = handler

    def calls_to(self, path):
        return [r for r in self.calls if r.url.path == path]

    async def __call__(self, request):
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def api():
    fake = FakeApi()
    fake.route("POST", "/auth/logout", lambda r: httpx.Response(200, json={"ok": True}))
    return fake


@pytest.fixture
def state():
    return StateStore.in_memory({"accessToken": "old", "refreshToken": "old-r"})


@pytest.fixture
def make_client(api, state):
    def _make(**kwargs):
        kwargs.setdefault("state", state)
        kwargs.setdefault("settings", {})
        return SessionClient(API, transport=api.transport(), **kwargs)

    return _make
