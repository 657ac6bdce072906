"""Shared test fixtures for the tokbox test suite.

WHY: Token and client tests need the same fake credentials, a frozen clock,
scripted randomness, and a way to stand up a TokboxClient against a fake
HTTP server. Centralizing these keeps every test deterministic.

HOW: Pytest fixtures provide a fixed clock, a SequenceRandom that returns
scripted nonces, a signer built from both, and a make_client factory that
wires an httpx.MockTransport handler into a real TokboxClient.

RULES:
- The secret is a 40-char hex string, the shape TokBox issues
- No test touches the network; every HTTP call hits a MockTransport handler
- Clients created via make_client are closed at teardown
"""

from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from tests._data import API_KEY, API_SECRET, FIXED_NOW, SequenceRandom
from tokbox.api.client import TokboxClient
from tokbox.config import Credentials
from tokbox.tokens import TokenSigner


@pytest.fixture
def credentials():
    return Credentials(api_key=API_KEY, api_secret=API_SECRET)


@pytest.fixture
def fixed_clock():
    return lambda: float(FIXED_NOW)


@pytest.fixture
def signer(credentials, fixed_clock):
    """A signer with a frozen clock and nonces 111111, 222222, 333333."""
    return TokenSigner(
        credentials,
        clock=fixed_clock,
        rng=SequenceRandom([111111, 222222, 333333]),
        uuid_factory=lambda: "00000000-0000-4000-8000-000000000001",
    )


@pytest.fixture
def make_client():
    """Factory: make_client(handler) -> TokboxClient backed by MockTransport."""
    clients: List[TokboxClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> TokboxClient:
        client = TokboxClient(
            API_KEY,
            API_SECRET,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
