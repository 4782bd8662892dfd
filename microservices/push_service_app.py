"""
Push & presence reference backend (standalone FastAPI app).

Purpose:
- Serve the HTTP contract the page and the service worker consume:
  VAPID public key, save/delete push subscription, admin activity/offline,
  property-request background sync
- Keep everything in memory (dev / tests); it does not deliver Web Push messages

Run:
- uvicorn microservices.push_service_app:app --host 0.0.0.0 --port 8000
"""
import logging
from typing import List, Optional

from fastapi import Body, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from config.settings import settings
from core.exception_handlers import register_exception_handlers
from core.logging import request_logging_middleware
from core.response import ok
from models.subscription import PushSubscription
from services.presence_service import presence_service
from services.property_request_service import property_request_service
from services.subscription_service import subscription_service

logger = logging.getLogger(__name__)

SESSION_COOKIE = "access_token"

app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION)

# credentials are included by the client, so origins must be explicit in production
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=".*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_logging_middleware)
register_exception_handlers(app)


def _owner(request: Request) -> str:
    return request.cookies.get(SESSION_COOKIE) or "anonymous"


@app.get("/health")
async def health():
    """Health check for the push service."""
    return ok({"service": "push", "status": "ok"})


# ---------------------- push subscriptions ---------------------- #

@app.get("/api/push/vapid-public-key", response_class=PlainTextResponse)
async def vapid_public_key():
    """URL-safe base64 VAPID public key, as plain text."""
    if not settings.VAPID_PUBLIC_KEY:
        raise HTTPException(status_code=503, detail="VAPID public key is not configured")
    return PlainTextResponse(settings.VAPID_PUBLIC_KEY)


@app.post("/api/push/save-subscription")
async def save_subscription(request: Request, subscription: PushSubscription):
    """
    Store (or refresh) the caller's subscription.

    - 201 Created: first time this endpoint is seen
    - 200 OK: same endpoint saved again
    - 422: body is not a subscription
    """
    result = subscription_service.save_subscription(_owner(request), subscription)
    return JSONResponse(status_code=result["status_code"], content=ok({"message": result["message"]}))


@app.post("/api/push/delete-subscription")
async def delete_subscription(subscription: PushSubscription):
    result = subscription_service.delete_subscription(subscription.endpoint)
    if result["status_code"] == 404:
        raise HTTPException(status_code=404, detail=result["error"])
    return ok({"message": result["message"]})


@app.get("/api/push/subscriptions")
async def list_subscriptions(request: Request, mine: bool = False):
    """Debug: subscriptions currently stored (optionally only the caller's)."""
    owner: Optional[str] = _owner(request) if mine else None
    subs = subscription_service.list_subscriptions(owner)
    return ok([s.to_json() for s in subs])


# ---------------------- admin presence ---------------------- #

@app.put("/api/{admin_id}/activity")
async def admin_activity(admin_id: str):
    record = presence_service.mark_active(admin_id)
    return ok(record.model_dump(mode="json"))


@app.put("/api/{admin_id}/offline")
async def admin_offline(admin_id: str):
    record = presence_service.mark_offline(admin_id)
    return ok(record.model_dump(mode="json"))


# ---------------------- property requests ---------------------- #

@app.get("/api/property-requests/sync")
async def sync_property_requests():
    """New property requests since the last sync (consumed by the service worker)."""
    return {"newRequests": property_request_service.take_new()}


@app.post("/api/property-requests", status_code=201)
async def create_property_request(payload: dict = Body(...)):
    property_request_service.add(payload)
    return Response(status_code=201)


@app.get("/api/admins/online")
async def online_admins():
    online: List[str] = [r.admin_id for r in presence_service.records.values() if r.online]
    return ok(online)
