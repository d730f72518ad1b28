"""Router wiring and HTTP error envelope tests.

The service layer is bypassed or patched; the database dependency yields a
mock session so no connection is ever opened.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from nextmove.app import create_app
from nextmove.config import settings
from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole
from nextmove.modules.auth.dependencies import get_current_user
from nextmove.modules.coupon.router import router as coupon_router
from nextmove.modules.notifications.router import router as notification_router
from nextmove.modules.notifications.service import NotificationService
from nextmove.modules.payments.router import router as payment_router
from nextmove.modules.payments.router import webhook_router
from nextmove.modules.pod.router import router as pod_router
from nextmove.modules.pos.router import router as pos_router
from nextmove.modules.rfq.router import router as offer_router
from nextmove.modules.shipment.router import router as shipment_router
from tests.factories import make_user


def _routes(router) -> set[tuple[str, str]]:
    return {(method, route.path) for route in router.routes for method in route.methods}


async def _override_get_db():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    yield session


@pytest.fixture
def app():
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


def _login_as(app, role: ProfileRole):
    user = make_user(role)
    app.dependency_overrides[get_current_user] = lambda: user
    return user


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


class TestRouteRegistration:
    def test_offer_routes(self):
        assert _routes(offer_router) == {
            ("GET", "/rfqs/{rfq_id}/offers"),
            ("POST", "/offers/{offer_id}/accept"),
            ("POST", "/offers/{offer_id}/reject"),
        }

    def test_shipment_routes(self):
        routes = _routes(shipment_router)
        assert ("GET", "/shipments") in routes
        assert ("GET", "/shipments/by-rfq/{rfq_id}") in routes
        assert ("PATCH", "/shipments/{shipment_id}") in routes
        assert ("DELETE", "/shipments/{shipment_id}") in routes
        assert ("POST", "/shipments/{shipment_id}/pod") in routes
        assert ("POST", "/shipments/{shipment_id}/assign-driver") in routes

    def test_pod_and_pos_routes(self):
        assert _routes(pod_router) == {("GET", "/pods"), ("POST", "/pods/{pod_id}/review")}
        assert _routes(pos_router) == {
            ("GET", "/pos/sessions/active"),
            ("POST", "/pos/sessions"),
            ("POST", "/pos/sessions/{session_id}/close"),
        }

    def test_coupon_routes(self):
        assert ("POST", "/coupons/validate") in _routes(coupon_router)
        assert ("PATCH", "/coupons/{coupon_id}") in _routes(coupon_router)

    def test_payment_and_notification_routes(self):
        assert _routes(payment_router) == {("POST", "/payments/{provider}/checkout")}
        assert _routes(webhook_router) == {("POST", "/webhooks/{provider}")}
        assert ("POST", "/notifications/sms") in _routes(notification_router)

    def test_everything_is_mounted_under_api_v1(self, app):
        paths = {getattr(route, "path", "") for route in app.routes}
        assert "/api/v1/offers/{offer_id}/accept" in paths
        assert "/api/v1/webhooks/{provider}" in paths
        assert "/health" in paths


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------


class TestHttp:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_missing_token_gets_error_envelope(self, client):
        response = client.get("/api/v1/shipments", headers={"X-Request-ID": "req-123"})

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "UNAUTHORIZED"
        assert error["requestId"] == "req-123"
        assert response.headers["X-Request-ID"] == "req-123"

    def test_garbage_token_is_unauthorized(self, client):
        response = client.get("/api/v1/pods", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_sms_broadcast_is_admin_only(self, app, client):
        _login_as(app, ProfileRole.FORWARDER)
        response = client.post(
            "/api/v1/notifications/sms", json={"to": ["+221771234567"], "content": "Hello"}
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_sms_broadcast_reports_per_recipient(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "intech_sms_enabled", False)
        monkeypatch.setattr(settings, "twilio_enabled", False)
        _login_as(app, ProfileRole.ADMIN)

        response = client.post(
            "/api/v1/notifications/sms", json={"to": ["+221771234567"], "content": "Hello"}
        )

        assert response.status_code == 200
        (result,) = response.json()
        assert result["sent"] is False
        assert result["error"] == "No SMS provider enabled"

    def test_empty_sms_recipients_fail_validation(self, app, client):
        _login_as(app, ProfileRole.ADMIN)
        response = client.post("/api/v1/notifications/sms", json={"to": [], "content": "Hello"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_notification_inbox(self, app, client, monkeypatch):
        user = _login_as(app, ProfileRole.CLIENT)
        list_for_user = AsyncMock(return_value=[])
        monkeypatch.setattr(NotificationService, "list_for_user", list_for_user)

        response = client.get("/api/v1/notifications?unread_only=true")

        assert response.status_code == 200
        assert response.json() == []
        list_for_user.assert_awaited_once_with(user.id, unread_only=True, limit=50, offset=0)

    def test_unknown_payment_provider(self, client):
        response = client.post("/api/v1/webhooks/stripe", json={})
        assert response.status_code == 422

    def test_missing_notification_is_404(self, app, client, monkeypatch):
        from nextmove.exceptions import NotFoundException

        _login_as(app, ProfileRole.CLIENT)
        monkeypatch.setattr(
            NotificationService,
            "mark_read",
            AsyncMock(side_effect=NotFoundException("Notification not found")),
        )

        response = client.post(f"/api/v1/notifications/{uuid.uuid4()}/read")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Notification not found"
