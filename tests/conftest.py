# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sms_gateway.api.send import get_pipeline_dep
from sms_gateway.core.errors import RelayWriteError
from sms_gateway.main import app as fastapi_app
from sms_gateway.services.crypto import PassthroughDecoder, SymmetricDecoder
from sms_gateway.services.pipeline import CommandPipeline
from sms_gateway.services.relay import CommandRelay
from sms_gateway.services.replay import ReplayGuard

TEST_KEY = b"0123456789abcdef0123456789abcdef"
TEST_NOW = 1_700_000_000


class RecordingChannel:
    """Downstream channel keeping every frame it was handed."""

    def __init__(self) -> None:
        self.frames: list[bytes] = []
        self.closed = False

    def write(self, frame: bytes) -> None:
        self.frames.append(frame)

    def close(self) -> None:
        self.closed = True


class FailingChannel(RecordingChannel):
    """Downstream channel whose device has gone away."""

    def write(self, frame: bytes) -> None:
        raise RelayWriteError("device unplugged")


class FrozenClock:
    """Clock returning a settable timestamp."""

    def __init__(self, now: int = TEST_NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def test_key() -> bytes:
    return TEST_KEY


@pytest.fixture()
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def failing_channel() -> FailingChannel:
    return FailingChannel()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def replay_guard() -> ReplayGuard:
    return ReplayGuard()


@pytest.fixture()
def pipeline(
    channel: RecordingChannel, clock: FrozenClock, replay_guard: ReplayGuard
) -> CommandPipeline:
    """Pipeline in insecure mode writing to a recording channel."""
    return CommandPipeline(
        decoder=PassthroughDecoder(),
        replay_guard=replay_guard,
        relay=CommandRelay(channel),
        clock=clock,
    )


@pytest.fixture()
def secure_pipeline(
    channel: RecordingChannel, clock: FrozenClock, replay_guard: ReplayGuard
) -> CommandPipeline:
    """Pipeline decrypting tokens with `TEST_KEY`."""
    return CommandPipeline(
        decoder=SymmetricDecoder(TEST_KEY),
        replay_guard=replay_guard,
        relay=CommandRelay(channel),
        clock=clock,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, pipeline: CommandPipeline) -> Iterator[TestClient]:
    app.dependency_overrides[get_pipeline_dep] = lambda: pipeline
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_pipeline_dep, None)


@pytest.fixture()
def secure_client(app: FastAPI, secure_pipeline: CommandPipeline) -> Iterator[TestClient]:
    app.dependency_overrides[get_pipeline_dep] = lambda: secure_pipeline
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_pipeline_dep, None)
