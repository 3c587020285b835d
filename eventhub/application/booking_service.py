from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session

from eventhub.application.inventory_service import InventoryAdjuster
from eventhub.domain.exceptions import BookingNotFoundError, InvalidStateTransitionError
from eventhub.domain.state_machine import (
    BookingStateMachine,
    BookingStatus,
    RELEASING_STATUSES,
)
from eventhub.infrastructure.db.models import Booking
from eventhub.infrastructure.repositories.booking_repository import (
    BookingItemRepository,
    BookingRepository,
)
from eventhub.infrastructure.repositories.seat_repository import SeatRepository
from eventhub.infrastructure.repositories.ticket_type_repository import TicketTypeRepository

logger = logging.getLogger(__name__)


class BookingService:
    """Application service owning the booking payment lifecycle."""

    def __init__(
        self,
        db: Session,
        booking_repository: BookingRepository | None = None,
        booking_item_repository: BookingItemRepository | None = None,
        inventory: InventoryAdjuster | None = None,
    ):
        self.db = db
        self.booking_repository = booking_repository or BookingRepository(db)
        self.booking_item_repository = booking_item_repository or BookingItemRepository(db)
        self.inventory = inventory or InventoryAdjuster(
            TicketTypeRepository(db),
            SeatRepository(db),
        )

    def create(
        self,
        event_id: str,
        customer_name: str,
        customer_email: str,
        total_amount: int,
        payment_intent_id: str | None,
        qr_code: str,
        expires_at: datetime | None = None,
    ) -> Booking:
        booking = self.booking_repository.create(
            event_id=event_id,
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=total_amount,
            payment_intent_id=payment_intent_id,
            qr_code=qr_code,
            expires_at=expires_at,
        )
        logger.info(
            "Booking %s created (pending) for event %s, amount=%s, intent=%s",
            booking.id,
            event_id,
            total_amount,
            payment_intent_id,
        )
        return booking

    def get(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get(booking_id)
        if not booking:
            raise BookingNotFoundError(booking_id)
        return booking

    def get_by_payment_intent(self, payment_intent_id: str) -> Booking:
        booking = self.booking_repository.get_by_payment_intent_id(payment_intent_id)
        if not booking:
            raise BookingNotFoundError(payment_intent_id)
        return booking

    def confirm(
        self,
        booking_id: str,
        new_status: BookingStatus,
        payment_intent_id: str | None = None,
    ) -> Booking:
        """
        Move a booking to `new_status`.

        Re-applying the current status is a no-op, so repeated
        confirmations never touch inventory twice.
        """
        booking = self.booking_repository.get(booking_id, for_update=True)
        if not booking:
            raise BookingNotFoundError(booking_id)

        if booking.payment_status == new_status:
            return booking

        if not self._transition(booking, new_status):
            # Lost a race: only the winner's transition releases inventory.
            return booking

        if payment_intent_id and not booking.payment_intent_id:
            booking.payment_intent_id = payment_intent_id

        if new_status in RELEASING_STATUSES:
            items = self.booking_item_repository.list_by_booking(booking.id)
            self.inventory.release_items(items)

        self.db.flush()
        logger.info("Booking %s is now %s", booking.id, new_status.value)
        return booking

    def confirm_by_payment_intent(
        self,
        payment_intent_id: str,
        new_status: BookingStatus,
    ) -> Booking:
        booking = self.get_by_payment_intent(payment_intent_id)
        return self.confirm(booking.id, new_status, payment_intent_id)

    def cancel(self, booking_id: str) -> Booking:
        return self.confirm(booking_id, BookingStatus.CANCELLED)

    def expire_stale(self, now: datetime | None = None) -> list[Booking]:
        """
        Release inventory held by pending bookings past their deadline.
        """
        now = now or datetime.now(timezone.utc)
        expired = []
        for booking in self.booking_repository.list_expired_pending(now):
            try:
                expired.append(self.confirm(booking.id, BookingStatus.EXPIRED))
            except InvalidStateTransitionError:
                logger.info("Booking %s was settled before it could expire", booking.id)

        if expired:
            logger.info("Expired %s stale pending bookings", len(expired))
        return expired

    def _transition(self, booking: Booking, to_status: BookingStatus) -> bool:
        from_status = booking.payment_status
        BookingStateMachine.validate_transition(from_status, to_status)
        if self.booking_repository.try_transition(booking.id, from_status, to_status):
            return True

        current = booking.payment_status
        if current != to_status:
            raise InvalidStateTransitionError(
                from_state=current.value,
                to_state=to_status.value,
            )
        return False

