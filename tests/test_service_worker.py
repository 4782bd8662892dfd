import json

import httpx
import pytest

from browser.events import NotificationClickEvent, PushEvent, SyncEvent
from core.exceptions import InvalidStateError
from services.property_request_service import property_request_service
from services.push_notifications import register_service_worker

BASE_URL = "http://testserver"
DEFAULT_URL = "/agent-pannel/property-requests"


def static_site(requests_seen, missing=()):
    """Origin serving the static shell; paths in `missing` answer 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request.url.path)
        if request.url.path in missing:
            return httpx.Response(404)
        return httpx.Response(200, content=b"<html>" + request.url.path.encode() + b"</html>")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


async def registered(browser):
    browser.permission.set_state("granted")
    registration = await register_service_worker(browser)
    assert registration is not None
    return registration


@pytest.mark.asyncio
async def test_install_precaches_static_assets(browser_factory):
    seen = []
    browser = browser_factory(http=static_site(seen))
    await registered(browser)

    cache = await browser.caches.open("mateluxy-cache-v1")
    assert set(cache.entries) == {"/", "/index.html", "/favicon.ico", "/manifest.json"}
    assert cache.match("/favicon.ico") == b"<html>/favicon.ico</html>"


@pytest.mark.asyncio
async def test_precache_failure_does_not_block_activation(browser_factory):
    seen = []
    browser = browser_factory(http=static_site(seen, missing={"/manifest.json"}))
    registration = await registered(browser)

    assert registration.active is not None
    cache = await browser.caches.open("mateluxy-cache-v1")
    assert cache.entries == {}


@pytest.mark.asyncio
async def test_activate_drops_old_caches_and_claims_pages(browser_factory):
    seen = []
    browser = browser_factory(http=static_site(seen))
    await browser.caches.open("mateluxy-cache-v0")
    page = browser.open_page("/agent-pannel/dashboard")
    assert page.controller is None

    registration = await registered(browser)

    assert await browser.caches.keys() == ["mateluxy-cache-v1"]
    assert page.controller is registration.active


@pytest.mark.asyncio
async def test_registering_same_script_twice_reuses_registration(browser):
    first = await registered(browser)
    second = await register_service_worker(browser)
    assert first is second


@pytest.mark.asyncio
async def test_malformed_push_shows_fallback_notification(browser):
    registration = await registered(browser)
    shown = await registration.active.dispatch(PushEvent(data=b"<<not json>>"))

    assert shown.title == "New Property Request"
    assert shown.options.data.url == DEFAULT_URL
    assert shown.options.require_interaction is True
    assert [a.action for a in shown.options.actions] == ["view", "close"]
    assert await registration.get_notifications() == [shown]


@pytest.mark.asyncio
async def test_push_is_relayed_to_open_pages(browser):
    registration = await registered(browser)
    page = browser.open_page("/agent-pannel/dashboard")
    received = []
    page.messages.add_event_listener("message", lambda event: received.append(event.data))

    body = {"title": "New viewing booked", "body": "Palm Jumeirah villa", "data": {"url": "/agent-pannel/bookings"}}
    await registration.active.dispatch(PushEvent(data=json.dumps(body).encode()))

    assert received == [
        {"type": "NOTIFICATION", "title": "New viewing booked", "body": "Palm Jumeirah villa",
         "data": {"url": "/agent-pannel/bookings"}}
    ]


@pytest.mark.asyncio
async def test_push_without_permission_does_not_crash_worker(browser):
    registration = await registered(browser)
    browser.permission.set_state("denied")
    assert await registration.active.dispatch(PushEvent(data=b"{}")) is None
    assert registration.active.failed == 0


@pytest.mark.asyncio
async def test_click_close_action_only_dismisses(browser):
    registration = await registered(browser)
    page = browser.open_page("/agent-pannel/dashboard")
    shown = await registration.active.dispatch(PushEvent(data=b"{}"))

    result = await registration.active.dispatch(NotificationClickEvent(notification=shown, action="close"))

    assert result is None
    assert shown.closed
    assert await registration.get_notifications() == []
    assert page.history == [f"{BASE_URL}/agent-pannel/dashboard"]


@pytest.mark.asyncio
async def test_click_focuses_and_navigates_agent_panel_window(browser):
    registration = await registered(browser)
    other = browser.open_page("/properties")
    panel = browser.open_page("/agent-pannel/dashboard")
    shown = await registration.active.dispatch(
        PushEvent(data=b'{"title": "Request", "data": {"url": "/agent-pannel/property-requests/7"}}')
    )

    target = await registration.active.dispatch(NotificationClickEvent(notification=shown, action="view"))

    assert target is panel
    assert panel.focused and not other.focused
    assert panel.url == f"{BASE_URL}/agent-pannel/property-requests/7"
    assert len(browser.pages) == 2


@pytest.mark.asyncio
async def test_click_opens_new_window_when_no_panel_is_open(browser):
    registration = await registered(browser)
    browser.open_page("/properties")
    shown = await registration.active.dispatch(PushEvent(data=b"garbage"))

    target = await registration.active.dispatch(NotificationClickEvent(notification=shown))

    assert target.url == f"{BASE_URL}{DEFAULT_URL}"
    assert target in browser.pages
    assert target.controller is registration.active


@pytest.mark.asyncio
async def test_sync_notifies_about_new_property_requests(browser):
    registration = await registered(browser)
    property_request_service.add({"id": 1, "type": "buy"})
    property_request_service.add({"id": 2, "type": "rent"})

    data = await registration.active.dispatch(SyncEvent(tag="property-requests-sync"))

    assert len(data["newRequests"]) == 2
    (shown,) = await registration.get_notifications()
    assert shown.title == "New Property Requests"
    assert shown.options.body == "You have 2 new property requests."


@pytest.mark.asyncio
async def test_sync_with_nothing_new_shows_nothing(browser):
    registration = await registered(browser)
    data = await registration.active.dispatch(SyncEvent(tag="property-requests-sync"))
    assert data == {"newRequests": []}
    assert await registration.get_notifications() == []


@pytest.mark.asyncio
async def test_sync_failure_is_logged_not_raised(browser_factory):
    seen = []
    browser = browser_factory(http=static_site(seen, missing={"/api/property-requests/sync"}))
    registration = await registered(browser)

    assert await registration.active.dispatch(SyncEvent(tag="property-requests-sync")) is None
    assert await registration.active.dispatch(SyncEvent(tag="other-tag")) is None
    assert "/api/property-requests/sync" in seen


@pytest.mark.asyncio
async def test_unexpected_precache_error_does_not_block_install(browser_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("disk full")

    browser = browser_factory(http=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL))
    registration = await registered(browser)

    assert registration.active is not None
    assert registration.active.failed == 0


@pytest.mark.asyncio
async def test_ready_without_registration_raises_invalid_state(browser):
    # readiness signalled but the registration is gone
    browser.service_worker._ready.set()
    with pytest.raises(InvalidStateError):
        await browser.service_worker.ready()
