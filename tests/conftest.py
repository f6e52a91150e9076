"""Shared pytest fixtures for ShareLink.

The app runs against an in-memory SQLite database; storage, gateways and
email are swapped for in-process fakes through dependency overrides.
"""
import hashlib
import hmac
import itertools
import json
import os
import time

# Must be set before sharelink.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EXPIRY_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["SEND_NOTIFICATIONS"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_PUBLIC_KEY"] = "pk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["S3_BUCKET_NAME"] = "sharelink-test"
os.environ["ADMIN_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from init_db import seed_pricing_tiers
from sharelink.api import deps
from sharelink.core.security import create_user_token
from sharelink.db import base
from sharelink.db.session import get_db
from sharelink.main import app
from sharelink.models.pricing_tier import PricingTier
from sharelink.network.email_service import EmailService
from sharelink.network.razorpay_gateway import RazorpayGateway
from sharelink.network.storage import S3Storage
from sharelink.network.stripe_gateway import StripeGateway
from sharelink.services import users

WEBHOOK_SECRET = "whsec_test_secret"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# =================================================================
# Fakes
# =================================================================

class FakeS3Client:
    """Just enough of the boto3 S3 client for S3Storage."""

    def __init__(self):
        self.objects = set()
        self.presigned = []

    def generate_presigned_url(self, method, Params=None, ExpiresIn=3600):
        self.presigned.append((method, Params, ExpiresIn))
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?op={method}&expires={ExpiresIn}"

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        client = self

        class _Paginator:
            def paginate(self, Bucket, Prefix=""):
                keys = sorted(k for k in client.objects if k.startswith(Prefix))
                for start in range(0, len(keys), 2):
                    yield {"Contents": [{"Key": k} for k in keys[start:start + 2]]}

        return _Paginator()

    def delete_objects(self, Bucket, Delete):
        deleted = []
        for obj in Delete["Objects"]:
            self.objects.discard(obj["Key"])
            deleted.append({"Key": obj["Key"]})
        return {"Deleted": deleted}


class FakeRazorpayGateway(RazorpayGateway):
    """Real signature checks, canned orders."""

    def __init__(self):
        super().__init__("rzp_test_key", "rzp_test_secret", client=object())
        self.orders = []
        self._ids = itertools.count(1)

    def create_order(self, amount, currency="INR", receipt=""):
        order = {
            "id": f"order_test{next(self._ids)}",
            "amount": int(round(amount * 100)),
            "currency": currency,
            "receipt": receipt,
        }
        self.orders.append(order)
        return order


class FakeStripeGateway(StripeGateway):
    """Real webhook signature checks, in-memory PaymentIntents."""

    def __init__(self):
        super().__init__("sk_test_dummy", "pk_test_dummy", WEBHOOK_SECRET)
        self.intents = {}
        self._ids = itertools.count(1)

    def create_payment_intent(self, amount, currency="USD", metadata=None):
        intent_id = f"pi_test{next(self._ids)}"
        intent = {
            "id": intent_id,
            "client_secret": f"{intent_id}_secret",
            "amount": int(round(amount * 100)),
            "currency": currency.lower(),
            "metadata": metadata or {},
            "status": "requires_payment_method",
        }
        self.intents[intent_id] = intent
        return intent

    def retrieve_payment_intent(self, payment_intent_id):
        return self.intents[payment_intent_id]


class FakeMailer(EmailService):
    def __init__(self):
        super().__init__(host="smtp.test", port=587, sender="noreply@sharelink.test")
        self.sent = []

    async def send_email(self, to_email, subject, body_html):
        self.sent.append({"to": to_email, "subject": subject, "body": body_html})
        return True


def sign_stripe_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    timestamp = int(timestamp or time.time())
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, intent: dict) -> str:
    return json.dumps({
        "id": "evt_test",
        "object": "event",
        "type": event_type,
        "data": {"object": {"object": "payment_intent", **intent}},
    })


# =================================================================
# Fixtures
# =================================================================

@pytest.fixture
def db_session():
    base.Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        base.Base.metadata.drop_all(bind=engine)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def storage(s3_client):
    return S3Storage("sharelink-test", "ap-south-1", client=s3_client)


@pytest.fixture
def razorpay_gateway():
    return FakeRazorpayGateway()


@pytest.fixture
def stripe_gateway():
    return FakeStripeGateway()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(db_session, storage, razorpay_gateway, stripe_gateway, mailer):
    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_razorpay] = lambda: razorpay_gateway
    app.dependency_overrides[deps.get_stripe] = lambda: stripe_gateway
    app.dependency_overrides[deps.get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def tiers(db_session):
    """Seeded catalog keyed by name: Free (default), Standard, Premium."""
    seed_pricing_tiers(db_session)
    return {tier.name: tier for tier in db_session.query(PricingTier).all()}


@pytest.fixture
def user(db_session):
    return users.register(db_session, "Test User", "user@example.com", "secret123")


@pytest.fixture
def admin_user(db_session):
    return users.register(db_session, "Admin", "admin@example.com", "admin123", is_admin=True)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def make_upload(client):
    """Factory: request an upload slot through the API and return its data."""

    def _make(file_name="report.pdf", file_type="application/pdf", file_size=1024 ** 3, headers=None):
        response = client.post(
            "/api/files/getUploadUrl",
            json={"fileName": file_name, "fileType": file_type, "fileSize": file_size},
            headers=headers or {},
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _make
