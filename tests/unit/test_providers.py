import pytest
import razorpay

from eventhub.domain.exceptions import PaymentProviderError, PaymentVerificationError
from eventhub.infrastructure.payments.providers import (
    MockPaymentProvider,
    RazorpayPaymentProvider,
    get_payment_provider,
)


class FakeOrders:
    def __init__(self, fail=False):
        self.fail = fail
        self.payloads = []

    def create(self, payload):
        self.payloads.append(payload)
        if self.fail:
            raise razorpay.errors.BadRequestError("amount too small")
        return {"id": "order_123", "amount": payload["amount"], "currency": "INR", "status": "created"}


class FakeUtility:
    def verify_payment_signature(self, params):
        if params["razorpay_signature"] != "good":
            raise razorpay.errors.SignatureVerificationError("Razorpay Signature Verification Failed")
        return True


class FakeClient:
    def __init__(self, fail=False):
        self.order = FakeOrders(fail=fail)
        self.utility = FakeUtility()


def test_mock_intent_shape():
    intent = MockPaymentProvider().create_intent(
        amount=11000,
        currency="INR",
        receipt="rcpt_1",
        customer_email="asha@example.com",
    )

    assert intent.id.startswith("pi_mock_")
    assert intent.client_secret == f"{intent.id}_secret_mock"
    assert intent.amount == 11000
    assert intent.currency == "inr"
    assert intent.status == "requires_payment_method"


def test_mock_intents_are_unique():
    provider = MockPaymentProvider()
    ids = {
        provider.create_intent(100, "INR", "r", "a@example.com").id
        for _ in range(20)
    }
    assert len(ids) == 20


def test_mock_verification_rejects_foreign_ids():
    with pytest.raises(PaymentVerificationError):
        MockPaymentProvider().verify_payment("order_123", "pay_1", "sig")


def test_razorpay_order_becomes_intent():
    client = FakeClient()
    provider = RazorpayPaymentProvider("rzp_test_key", "secret", client=client)

    intent = provider.create_intent(
        amount=11000,
        currency="inr",
        receipt="rcpt_1",
        customer_email="asha@example.com",
        metadata={"customer_name": "Asha"},
    )

    assert intent.id == intent.client_secret == "order_123"
    assert provider.public_key == "rzp_test_key"
    payload = client.order.payloads[0]
    assert payload["amount"] == 11000
    assert payload["currency"] == "INR"
    assert payload["notes"] == {"customer_email": "asha@example.com", "customer_name": "Asha"}


def test_razorpay_failure_is_provider_error():
    provider = RazorpayPaymentProvider("k", "s", client=FakeClient(fail=True))

    with pytest.raises(PaymentProviderError):
        provider.create_intent(1, "INR", "rcpt", "a@example.com")


def test_razorpay_bad_signature():
    provider = RazorpayPaymentProvider("k", "s", client=FakeClient())

    provider.verify_payment("order_123", "pay_1", "good")
    with pytest.raises(PaymentVerificationError):
        provider.verify_payment("order_123", "pay_1", "forged")


def test_mock_flag_wins(monkeypatch):
    monkeypatch.setenv("ENABLE_MOCK_PAYMENTS", "true")
    monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test_key")
    monkeypatch.setenv("RAZORPAY_KEY_SECRET", "secret")

    assert isinstance(get_payment_provider(), MockPaymentProvider)


def test_unconfigured_gateway_falls_back_to_mock(monkeypatch):
    monkeypatch.setenv("ENABLE_MOCK_PAYMENTS", "false")
    monkeypatch.delenv("RAZORPAY_KEY_ID", raising=False)
    monkeypatch.delenv("RAZORPAY_KEY_SECRET", raising=False)

    assert isinstance(get_payment_provider(), MockPaymentProvider)


def test_configured_gateway_is_used(monkeypatch):
    monkeypatch.setenv("ENABLE_MOCK_PAYMENTS", "false")
    monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test_key")
    monkeypatch.setenv("RAZORPAY_KEY_SECRET", "secret")

    provider = get_payment_provider()

    assert isinstance(provider, RazorpayPaymentProvider)
    assert provider.name == "razorpay"
