import pytest
from fastapi.testclient import TestClient

from pixcode.api import app, get_payment_service
from pixcode.config import MerchantIdentity
from pixcode.renderer import QRRenderOptions
from pixcode.services.payments import PixPaymentService
from pixcode.services.status import StaticStatusProvider

FAKE_IMAGE = "data:image/png;base64,ZmFrZQ=="


class FakeRenderer:
    def __init__(self):
        self.calls = []

    def __call__(self, payload, options):
        self.calls.append((payload, options))
        return FAKE_IMAGE


@pytest.fixture
def merchant():
    return MerchantIdentity(
        pix_key="contato@dinamica.com",
        merchant_name="Dinamica SaaS",
        merchant_city="Sao Paulo",
    )


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def status_provider():
    return StaticStatusProvider()


@pytest.fixture
def service(merchant, fake_renderer, status_provider):
    return PixPaymentService(
        merchant,
        renderer=fake_renderer,
        render_options=QRRenderOptions(),
        status_provider=status_provider,
        render_timeout=5,
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_payment_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
