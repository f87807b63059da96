import pytest
from fastapi.testclient import TestClient

from indiyum.application.order_service import OrderService
from indiyum.core.config import Settings
from indiyum.core.errors import UpstreamError
from indiyum.domain.models import RemoteOrder
from indiyum.infrastructure.document_store import InMemoryDocumentStore
from indiyum.infrastructure.repositories.document_repository import DocumentRepository
from indiyum.infrastructure.session_store import SessionStore
from indiyum.interfaces.IPaymentGateway import IPaymentGateway
from indiyum.main import create_app

KEY_ID = "rzp_test_key"
SECRET = "test_secret"


class FakeGateway(IPaymentGateway):
    """Stands in for Razorpay: hands out order ids and records every call."""

    def __init__(self, order_id="order_abc", fail=False):
        self.order_id = order_id
        self.fail = fail
        self.calls = []

    @property
    def key_id(self):
        return KEY_ID

    async def create_remote_order(self, amount_minor, currency, receipt):
        self.calls.append((amount_minor, currency, receipt))
        if self.fail:
            raise UpstreamError("Failed to create order", reason="gateway_unreachable", detail="boom")
        order_id = self.order_id if len(self.calls) == 1 else f"{self.order_id}_{len(self.calls)}"
        return RemoteOrder(id=order_id, amount=amount_minor, currency=currency)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        RAZORPAY_KEY_ID=KEY_ID,
        RAZORPAY_KEY_SECRET=SECRET,
        DB_FILE=str(tmp_path / "db.json"),
        REDIS_URL=None,
        TIMEZONE="Asia/Kolkata",
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def repo(store):
    return DocumentRepository(store)


@pytest.fixture
def service(repo, gateway, settings):
    return OrderService(repo=repo, gateway=gateway, settings=settings)


@pytest.fixture
def client(settings, store, gateway):
    app = create_app(settings=settings, store=store, gateway=gateway, sessions=SessionStore(None, ttl=60))
    with TestClient(app) as c:
        yield c
