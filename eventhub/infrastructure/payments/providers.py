# eventhub/infrastructure/payments/providers.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from uuid import uuid4

import razorpay

from eventhub.domain.exceptions import PaymentProviderError, PaymentVerificationError
from eventhub.infrastructure import config

logger = logging.getLogger(__name__)

MOCK_INTENT_PREFIX = "pi_mock_"


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount: int
    currency: str
    status: str


class PaymentProvider(ABC):
    """One attempted charge per intent; amounts in minor currency units."""

    name: str
    public_key: str | None = None

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        receipt: str,
        customer_email: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        ...

    @abstractmethod
    def verify_payment(
        self,
        payment_intent_id: str,
        payment_id: str,
        signature: str,
    ) -> None:
        """Raise PaymentVerificationError if the payment cannot be trusted."""
        ...


class MockPaymentProvider(PaymentProvider):
    name = "mock"

    def create_intent(
        self,
        amount: int,
        currency: str,
        receipt: str,
        customer_email: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        intent_id = f"{MOCK_INTENT_PREFIX}{uuid4().hex[:24]}"
        logger.info("Created mock payment intent %s for receipt %s", intent_id, receipt)
        return PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_mock",
            amount=amount,
            currency=currency.lower(),
            status="requires_payment_method",
        )

    def verify_payment(
        self,
        payment_intent_id: str,
        payment_id: str,
        signature: str,
    ) -> None:
        if not payment_intent_id.startswith(MOCK_INTENT_PREFIX):
            raise PaymentVerificationError("Invalid mock payment intent ID")


class RazorpayPaymentProvider(PaymentProvider):
    """
    Razorpay orders stand in for payment intents.
    The order id is both the intent id and the checkout client secret.
    """

    name = "razorpay"

    def __init__(self, key_id: str, key_secret: str, client: razorpay.Client | None = None):
        self.public_key = key_id
        self._client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_intent(
        self,
        amount: int,
        currency: str,
        receipt: str,
        customer_email: str,
        metadata: dict | None = None,
    ) -> PaymentIntent:
        notes = {"customer_email": customer_email}
        notes.update(metadata or {})
        try:
            order = self._client.order.create(
                {
                    "amount": amount,
                    "currency": currency.upper(),
                    "receipt": receipt,
                    "notes": notes,
                }
            )
        except Exception as exc:
            logger.exception("Razorpay order creation failed for receipt %s", receipt)
            raise PaymentProviderError(f"Payment provider error: {exc}") from exc

        order_id = order.get("id")
        if not order_id:
            raise PaymentProviderError("Payment provider returned no order id")

        return PaymentIntent(
            id=order_id,
            client_secret=order_id,
            amount=order.get("amount", amount),
            currency=order.get("currency", currency.upper()),
            status=order.get("status", "created"),
        )

    def verify_payment(
        self,
        payment_intent_id: str,
        payment_id: str,
        signature: str,
    ) -> None:
        try:
            self._client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": payment_intent_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except razorpay.errors.SignatureVerificationError as exc:
            raise PaymentVerificationError("Invalid payment signature") from exc


def get_payment_provider() -> PaymentProvider:
    if config.mock_payments_enabled():
        return MockPaymentProvider()

    credentials = config.razorpay_credentials()
    if credentials is None:
        logger.warning(
            "Razorpay keys not configured (RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET); "
            "falling back to mock payments."
        )
        return MockPaymentProvider()

    key_id, key_secret = credentials
    return RazorpayPaymentProvider(key_id=key_id, key_secret=key_secret)
