"""Shared fixtures: a fake issuer + chat backend behind httpx.MockTransport."""
import asyncio
import json
from typing import Callable, Optional
from urllib.parse import parse_qs

import httpx
import jwt
import pytest

from core.dispatcher import QueryDispatcher
from core.models import Credentials
from core.token_manager import TokenManager

ISSUER_URL = "https://auth.example.com/oauth2/token"
CHAT_URL = "https://buschgpt.example.com/ext/api/chat/invoke"
SIGNING_KEY = "test-signing-key-that-is-long-enough-for-hs256"

NOW = 1_750_000_000.0


def make_jwt(exp: Optional[float] = None, **claims) -> str:
    """Mint an HS256 JWT; the server side never verifies our signature."""
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = int(exp)
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """Records every request and answers as the issuer or the chat service.

    issue() queues access tokens; the last one keeps being handed out.
    Override issuer_reply / chat_reply to return errors or raise.
    """

    def __init__(self):
        self.issuer_calls: list[httpx.Request] = []
        self.chat_calls: list[httpx.Request] = []
        self._tokens: list[str] = [make_jwt(exp=NOW + 3600)]
        self.issuer_reply: Callable[[httpx.Request], httpx.Response] = self.issue_next
        self.chat_reply: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"content": "42 Nm"})
        )

    def issue(self, *tokens: str) -> None:
        self._tokens = list(tokens)

    def issue_next(self, request: httpx.Request) -> httpx.Response:
        token = self._tokens.pop(0) if len(self._tokens) > 1 else self._tokens[0]
        return httpx.Response(
            200,
            json={"access_token": token, "token_type": "Bearer", "expires_in": 3600},
        )

    async def handler(self, request: httpx.Request) -> httpx.Response:
        # Yield once so concurrent callers really interleave.
        await asyncio.sleep(0)
        url = str(request.url)
        if url == ISSUER_URL:
            self.issuer_calls.append(request)
            return self.issuer_reply(request)
        if url == CHAT_URL:
            self.chat_calls.append(request)
            return self.chat_reply(request)
        return httpx.Response(404, text=f"no route for {url}")

    # --- request inspection helpers ---
    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return Credentials(
        issuer_url=ISSUER_URL,
        client_id="busch-client",
        client_secret="s3cret",
    )


@pytest.fixture
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def token_manager(credentials, http_client, clock):
    return TokenManager(credentials, http_client, clock=clock)


@pytest.fixture
def dispatcher(token_manager, http_client, clock):
    return QueryDispatcher(token_manager, http_client, CHAT_URL, clock=clock)
