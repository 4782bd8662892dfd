import asyncio

import pytest

from services.push_notifications import (
    NOT_SAVED_WARNING,
    PushSubscriptionManager,
    get_notification_permission_status,
    is_push_notification_supported,
    register_service_worker,
    request_notification_permission,
)
from services.subscription_service import subscription_service

SAVE = ("POST", "/api/push/save-subscription")
DELETE = ("POST", "/api/push/delete-subscription")
VAPID = ("GET", "/api/push/vapid-public-key")


@pytest.mark.asyncio
async def test_support_probe(browser_factory):
    assert is_push_notification_supported(browser_factory())
    no_push = browser_factory(push_supported=False)
    no_sw = browser_factory(service_worker_supported=False)
    assert not is_push_notification_supported(no_push)
    assert not is_push_notification_supported(no_sw)
    assert get_notification_permission_status(no_push) == "unsupported"


@pytest.mark.asyncio
async def test_request_permission_prompts_once_per_call(browser):
    assert get_notification_permission_status(browser) == "default"
    result = await request_notification_permission(browser)
    assert result.supported and result.granted
    assert browser.permission.prompt_count == 1
    assert get_notification_permission_status(browser) == "granted"


@pytest.mark.asyncio
async def test_request_permission_fails_soft(browser_factory):
    def broken_prompt():
        raise RuntimeError("prompt blocked")

    browser = browser_factory(prompt_handler=broken_prompt)
    result = await request_notification_permission(browser)
    assert result.supported is True
    assert result.granted is False
    assert "prompt blocked" in result.error


@pytest.mark.asyncio
async def test_register_service_worker_returns_none_when_unavailable(browser_factory):
    assert await register_service_worker(browser_factory(push_supported=False)) is None
    # unknown script path: registration fails, reported as None
    assert await register_service_worker(browser_factory(), "/missing-worker.js") is None


@pytest.mark.asyncio
async def test_subscribe_twice_reuses_the_same_subscription(manager, browser):
    first = await manager.ensure_subscribed()
    second = await manager.ensure_subscribed()

    assert first.success and second.success
    assert first.warning is None
    assert first.subscription.endpoint == second.subscription.endpoint
    assert browser.push_manager.created == 1
    assert len(subscription_service.list_subscriptions()) == 1


@pytest.mark.asyncio
async def test_concurrent_subscribe_calls_create_one_subscription(manager, browser):
    results = await asyncio.gather(*(manager.ensure_subscribed() for _ in range(5)))
    assert all(r.success for r in results)
    assert len({r.subscription.endpoint for r in results}) == 1
    assert browser.push_manager.created == 1


@pytest.mark.asyncio
async def test_subscribe_registers_worker_and_claims_page(manager, browser):
    page = browser.open_page("/agent-pannel/dashboard")
    result = await manager.ensure_subscribed()
    assert result.success
    registration = browser.service_worker.registration
    assert registration is not None and registration.active is not None
    assert page.controller is registration.active


@pytest.mark.asyncio
async def test_permission_denied_aborts(browser_factory, api):
    browser = browser_factory(prompt_handler=lambda: "denied")
    result = await PushSubscriptionManager(browser, api).ensure_subscribed()
    assert result.success is False
    assert result.message == "Notification permission denied"
    assert browser.service_worker.registration is None


@pytest.mark.asyncio
async def test_unsupported_browser(browser_factory, api):
    browser = browser_factory(push_supported=False)
    result = await PushSubscriptionManager(browser, api).ensure_subscribed()
    assert result.success is False
    assert result.message == "Push notifications not supported"


@pytest.mark.asyncio
async def test_server_save_failure_downgrades_to_warning(browser, fake_backend):
    fake_backend.status[SAVE] = 500
    async with fake_backend.client() as api:
        result = await PushSubscriptionManager(browser, api).ensure_subscribed()

    assert result.success is True
    assert result.warning == NOT_SAVED_WARNING
    assert "local only" in result.message
    # local subscription is kept
    assert (await browser.push_manager.get_subscription()).endpoint == result.subscription.endpoint


@pytest.mark.asyncio
async def test_server_unreachable_on_save_downgrades_to_warning(browser, fake_backend):
    fake_backend.fail.add(SAVE)
    async with fake_backend.client() as api:
        result = await PushSubscriptionManager(browser, api).ensure_subscribed()
    assert result.success is True
    assert result.warning == NOT_SAVED_WARNING
    assert await browser.push_manager.get_subscription() is not None


@pytest.mark.asyncio
async def test_missing_vapid_key_fails_without_subscribing(browser, fake_backend):
    fake_backend.status[VAPID] = 503
    async with fake_backend.client() as api:
        result = await PushSubscriptionManager(browser, api).ensure_subscribed()
    assert result.success is False
    assert result.message.startswith("Error subscribing to push notifications")
    assert "503" in result.message
    assert await browser.push_manager.get_subscription() is None
    assert fake_backend.count(*SAVE) == 0


@pytest.mark.asyncio
async def test_corrupt_vapid_key_fails(browser, fake_backend):
    fake_backend.vapid_key = "A"
    async with fake_backend.client() as api:
        result = await PushSubscriptionManager(browser, api).ensure_subscribed()
    assert result.success is False
    assert browser.push_manager.created == 0


@pytest.mark.asyncio
async def test_revoke_without_subscription_is_noop(browser, fake_backend):
    async with fake_backend.client() as api:
        result = await PushSubscriptionManager(browser, api).revoke_subscription()
    assert result.success is True
    assert fake_backend.count(*DELETE) == 0


@pytest.mark.asyncio
async def test_revoke_deletes_on_server_and_locally(manager, browser):
    await manager.ensure_subscribed()
    assert len(subscription_service.list_subscriptions()) == 1

    result = await manager.revoke_subscription()
    assert result.success is True
    assert subscription_service.list_subscriptions() == []
    assert await browser.push_manager.get_subscription() is None


@pytest.mark.asyncio
async def test_revoke_still_unsubscribes_locally_when_server_fails(browser, fake_backend):
    fake_backend.fail.add(DELETE)
    async with fake_backend.client() as api:
        manager = PushSubscriptionManager(browser, api)
        await manager.ensure_subscribed()
        result = await manager.revoke_subscription()
    assert result.success is True
    assert fake_backend.count(*DELETE) == 1
    assert await browser.push_manager.get_subscription() is None


@pytest.mark.asyncio
async def test_permission_revocation_invalidates_subscription(manager, browser):
    await manager.ensure_subscribed()
    browser.permission.set_state("denied")
    assert await browser.push_manager.get_subscription() is None
