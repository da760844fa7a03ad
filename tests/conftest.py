import pytest
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from pydantic import SecretStr

from x_cli.config import get_settings
from x_cli.models import Credentials

X_ENV_VARS = [
    "X_API_KEY",
    "X_API_SECRET",
    "X_ACCESS_TOKEN",
    "X_ACCESS_TOKEN_SECRET",
    "X_CLI_ENV_FILE",
    "X_MEDIA_PROCESSING_TIMEOUT",
    "LOG_FILE",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test in an empty directory with no X_* variables set."""
    for name in X_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def credentials():
    """Credentials from the published Twitter request-signing walkthrough."""
    return Credentials(
        consumer_key=SecretStr("xvz1evFS4wEEPTGEFPHBog"),
        consumer_secret=SecretStr("kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw"),
        token_key=SecretStr("370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb"),
        token_secret=SecretStr("LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE"),
    )


@pytest.fixture
def credential_env(monkeypatch):
    monkeypatch.setenv("X_API_KEY", "ck")
    monkeypatch.setenv("X_API_SECRET", "cs")
    monkeypatch.setenv("X_ACCESS_TOKEN", "at")
    monkeypatch.setenv("X_ACCESS_TOKEN_SECRET", "ats")


@dataclass
class Call:
    method: str
    url: str
    kind: str
    payload: Any = None


class FakeTransport:
    """
    Scripted stand-in for Transport.

    Each call pops the next scripted response: a dict is returned, an
    exception is raised, a callable is called with the Call.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Call] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def _respond(self, call: Call):
        self.calls.append(call)
        if not self.responses:
            raise AssertionError(f"Unexpected call: {call.method} {call.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(call)
        return response

    async def get(self, url):
        return await self._respond(Call("GET", url, "none"))

    async def delete(self, url):
        return await self._respond(Call("DELETE", url, "none"))

    async def post_json(self, url, payload):
        return await self._respond(Call("POST", url, "json", payload))

    async def post_form(self, url, fields):
        return await self._respond(Call("POST", url, "form", dict(fields)))

    async def post_multipart(self, url, fields):
        return await self._respond(Call("POST", url, "multipart", dict(fields)))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def install_transport(monkeypatch) -> Callable[..., FakeTransport]:
    """Make the CLI build its client on a FakeTransport scripted with ``responses``."""
    def install(responses: Optional[List[Any]] = None) -> FakeTransport:
        transport = FakeTransport(responses)
        monkeypatch.setattr("x_cli.commands.Transport", lambda *args, **kwargs: transport)
        return transport
    return install


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
