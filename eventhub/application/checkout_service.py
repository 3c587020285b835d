from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import json
import logging
from uuid import uuid4

from sqlalchemy.orm import Session

from eventhub.application.booking_service import BookingService
from eventhub.application.inventory_service import InventoryAdjuster
from eventhub.domain.exceptions import (
    AmountMismatchError,
    CartValidationError,
    InsufficientInventoryError,
    PriceMismatchError,
    SeatNotFoundError,
    SeatUnavailableError,
    TicketTypeNotFoundError,
)
from eventhub.domain.pricing import CartTotals, calculate_cart_totals
from eventhub.infrastructure import config
from eventhub.infrastructure.db.models import Booking
from eventhub.infrastructure.payments.providers import PaymentIntent, PaymentProvider
from eventhub.infrastructure.repositories.booking_repository import (
    BookingItemRepository,
    BookingRepository,
)
from eventhub.infrastructure.repositories.seat_repository import SeatRepository
from eventhub.infrastructure.repositories.ticket_type_repository import TicketTypeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    event_id: str
    ticket_type_id: str
    quantity: int
    price: int
    seat_id: str | None = None


@dataclass(frozen=True)
class CheckoutResult:
    booking: Booking
    intent: PaymentIntent
    totals: CartTotals
    provider_name: str
    provider_key: str | None


def scannable_code(payment_intent_id: str) -> str:
    return f"BOOKING-{payment_intent_id}"


class CheckoutService:
    """
    Turns a cart into a pending booking backed by a payment intent.

    Runs inside the caller's transaction: if any step raises, rolling
    back the session undoes every inventory hold taken so far.
    """

    def __init__(
        self,
        db: Session,
        payment_provider: PaymentProvider,
        fee_percent: int | None = None,
        reservation_ttl_seconds: int | None = None,
    ):
        self.db = db
        self.payment_provider = payment_provider
        self.fee_percent = (
            config.service_fee_percent() if fee_percent is None else fee_percent
        )
        self.reservation_ttl_seconds = (
            config.reservation_ttl_seconds()
            if reservation_ttl_seconds is None
            else reservation_ttl_seconds
        )
        self.ticket_type_repository = TicketTypeRepository(db)
        self.seat_repository = SeatRepository(db)
        self.booking_item_repository = BookingItemRepository(db)
        self.inventory = InventoryAdjuster(self.ticket_type_repository, self.seat_repository)
        self.bookings = BookingService(
            db,
            booking_repository=BookingRepository(db),
            booking_item_repository=self.booking_item_repository,
            inventory=self.inventory,
        )

    def checkout(
        self,
        amount: int,
        customer_name: str,
        customer_email: str,
        lines: list[CartLine],
        currency: str | None = None,
    ) -> CheckoutResult:
        if not lines:
            raise CartValidationError("Cart must contain at least one item")
        if amount <= 0:
            raise CartValidationError("Invalid amount. Amount must be a positive number.")

        # Abandoned holds go back on sale before new ones are taken.
        self.bookings.expire_stale()

        totals = self._price_cart(lines)
        if totals.total != amount:
            raise AmountMismatchError(expected=totals.total, received=amount)

        currency = currency or config.payment_currency()
        intent = self.payment_provider.create_intent(
            amount=totals.total,
            currency=currency,
            receipt=f"rcpt_{uuid4().hex[:20]}",
            customer_email=customer_email,
            metadata={
                "customer_name": customer_name,
                "cart_items": json.dumps(
                    [
                        {
                            "ticket_type_id": line.ticket_type_id,
                            "seat_id": line.seat_id,
                            "quantity": line.quantity,
                        }
                        for line in lines
                    ]
                ),
            },
        )

        booking = self.bookings.create(
            event_id=lines[0].event_id,
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=totals.total,
            payment_intent_id=intent.id,
            qr_code=scannable_code(intent.id),
            expires_at=self._reservation_deadline(),
        )

        for line in lines:
            item = self.booking_item_repository.create(
                booking_id=booking.id,
                ticket_type_id=line.ticket_type_id,
                seat_id=line.seat_id,
                quantity=line.quantity,
                price=line.price,
            )
            self.inventory.reserve_item(item)

        return CheckoutResult(
            booking=booking,
            intent=intent,
            totals=totals,
            provider_name=self.payment_provider.name,
            provider_key=self.payment_provider.public_key,
        )

    def _price_cart(self, lines: list[CartLine]) -> CartTotals:
        priced: list[tuple[int, int]] = []
        for line in lines:
            if line.quantity <= 0:
                raise CartValidationError("Quantity must be positive")

            ticket_type = self.ticket_type_repository.get(line.ticket_type_id)
            if not ticket_type or ticket_type.event_id != line.event_id:
                raise TicketTypeNotFoundError(line.ticket_type_id)
            if ticket_type.price != line.price:
                raise PriceMismatchError(
                    ticket_type_id=ticket_type.id,
                    expected=ticket_type.price,
                    received=line.price,
                )
            if ticket_type.available_quantity < line.quantity:
                raise InsufficientInventoryError(ticket_type.id, line.quantity)

            if line.seat_id:
                self._check_seat(line)

            priced.append((ticket_type.price, line.quantity))

        return calculate_cart_totals(priced, self.fee_percent)

    def _check_seat(self, line: CartLine) -> None:
        if line.quantity != 1:
            raise CartValidationError("A seat line must have quantity 1")

        seat = self.seat_repository.get(line.seat_id)
        if not seat or seat.event_id != line.event_id:
            raise SeatNotFoundError(line.seat_id)
        if seat.ticket_type_id != line.ticket_type_id:
            raise CartValidationError(
                f"Seat {seat.id} does not belong to ticket type {line.ticket_type_id}"
            )
        if not seat.is_available:
            raise SeatUnavailableError(seat.id)

    def _reservation_deadline(self) -> datetime | None:
        if self.reservation_ttl_seconds <= 0:
            return None
        return datetime.now(timezone.utc) + timedelta(seconds=self.reservation_ttl_seconds)
