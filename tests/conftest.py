import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio


# Ensure project root is on sys.path so `services.*`, `browser.*` imports work
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


# Explicitly enable pytest-asyncio plugin for async tests/fixtures
pytest_plugins = ("pytest_asyncio",)


from browser.profile import BrowserProfile
from config.settings import settings
from core.codec import bytes_to_url_base64
from microservices.push_service_app import app as push_app
from services.api_client import BackendClient
from services.presence_service import presence_service
from services.property_request_service import property_request_service
from services.push_notifications import PushSubscriptionManager
from services.subscription_service import subscription_service

BASE_URL = "http://testserver"

# 65-byte uncompressed P-256 point shape: 0x04 || 64 bytes
VAPID_KEY_BYTES = b"\x04" + bytes(range(1, 65))
VAPID_PUBLIC_KEY = bytes_to_url_base64(VAPID_KEY_BYTES)


class FakeBackend:
    """
    httpx MockTransport handler that records every call and can answer with
    a chosen status code or a transport error per (method, path).
    """

    def __init__(self):
        self.calls = []
        self.status = {}
        self.fail = set()
        self.vapid_key = VAPID_PUBLIC_KEY

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.calls.append(key)
        if key in self.fail:
            raise httpx.ConnectError("backend unreachable", request=request)
        code = self.status.get(key, 200)
        if key == ("GET", "/api/push/vapid-public-key") and code == 200:
            return httpx.Response(200, text=self.vapid_key)
        return httpx.Response(code, json={"ok": code < 400})

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, path))

    def client(self) -> BackendClient:
        return BackendClient(BASE_URL, transport=httpx.MockTransport(self.handler))


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def backend_state(monkeypatch):
    """Fresh in-memory backend stores and a configured VAPID key for every test."""
    monkeypatch.setattr(settings, "VAPID_PUBLIC_KEY", VAPID_PUBLIC_KEY)
    subscription_service.clear()
    presence_service.clear()
    property_request_service.clear()
    yield
    subscription_service.clear()
    presence_service.clear()
    property_request_service.clear()


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest_asyncio.fixture()
async def backend_client():
    """Raw async client for the reference backend app."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=push_app), base_url=BASE_URL) as ac:
        yield ac


@pytest_asyncio.fixture()
async def api():
    """BackendClient wired in-memory to the reference backend."""
    async with BackendClient(BASE_URL, transport=httpx.ASGITransport(app=push_app)) as client:
        yield client


def make_browser(**kwargs) -> BrowserProfile:
    kwargs.setdefault("prompt_handler", lambda: "granted")
    if "http" not in kwargs:
        kwargs["http"] = httpx.AsyncClient(transport=httpx.ASGITransport(app=push_app), base_url=BASE_URL)
    return BrowserProfile(BASE_URL, **kwargs)


@pytest_asyncio.fixture()
async def browser_factory():
    """Build browser profiles (closed at teardown). Defaults: app origin, user grants permission."""
    profiles = []

    def factory(**kwargs) -> BrowserProfile:
        profile = make_browser(**kwargs)
        profiles.append(profile)
        return profile

    yield factory
    for profile in profiles:
        await profile.close()
        await profile.http.aclose()


@pytest_asyncio.fixture()
async def browser(browser_factory):
    return browser_factory()


@pytest_asyncio.fixture()
async def manager(browser, api):
    return PushSubscriptionManager(browser, api)
