import pytest
from fastapi.testclient import TestClient
from api import app
from models.settings import GatewaySettings, get_settings
from managers.gateway_manager import get_gateway_factory

GATEWAY_ORDER = {
    "id": "order_1",
    "entity": "order",
    "amount": 50000,
    "amount_paid": 0,
    "amount_due": 50000,
    "currency": "INR",
    "receipt": "r1",
    "offer_id": None,
    "status": "created",
    "attempts": 0,
    "notes": {},
    "created_at": 169000000,
}


class StubGateway:
    """create_orderの呼び出しを記録するテスト用ゲートウェイ"""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else dict(GATEWAY_ORDER)
        self.error = error
        self.payloads = []

    def create_order(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings():
    return GatewaySettings(
        key_id="rzp_test_1234567890",
        key_secret="test_secret",
        environment="development",
    )


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def client(settings, gateway):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_gateway_factory] = lambda: (lambda _settings: gateway)
    yield TestClient(app)
    app.dependency_overrides.clear()
