import socket

import httpx
import pytest

from seeker_client.settings import get_settings


class Recorder:
    """Collects requests seen by an httpx.MockTransport."""

    def __init__(self, status_code=200, error=None):
        self.requests = []
        self.status_code = status_code
        self.error = error

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"simulated {self.error.__name__}", request=request)
        return httpx.Response(self.status_code, text="ok")

    def client(self):
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for key in ("SEEKER_SERVER_URL", "SEEKER_TIMEOUT_SECONDS", "SEEKER_PROPERTIES", "SEEKER_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def closed_port():
    """A localhost port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def make_recorder():
    return Recorder
