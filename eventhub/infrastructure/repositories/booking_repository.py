# eventhub/infrastructure/repositories/booking_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, update

from eventhub.infrastructure.db.models import Booking, BookingItem
from eventhub.domain.state_machine import BookingStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[Booking]:
        stmt = select(Booking).order_by(Booking.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def list_by_status(self, status: BookingStatus) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.payment_status == status)
            .order_by(Booking.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_expired_pending(self, now: datetime) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.payment_status == BookingStatus.PENDING)
            .where(Booking.expires_at.is_not(None))
            .where(Booking.expires_at <= now)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get(self, booking_id: str, for_update: bool = False) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            # Refresh a row another transaction may have moved on.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()


    def get_by_payment_intent_id(
        self,
        payment_intent_id: str,
    ) -> Booking | None:
        stmt = select(Booking).where(Booking.payment_intent_id == payment_intent_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_provider_payment_id(
        self,
        provider_payment_id: str,
    ) -> Booking | None:
        stmt = select(Booking).where(Booking.provider_payment_id == provider_payment_id)
        return self.db.execute(stmt).scalar_one_or_none()

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
        booking = Booking(
            event_id=event_id,
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=total_amount,
            payment_status=BookingStatus.PENDING,
            payment_intent_id=payment_intent_id,
            qr_code=qr_code,
            expires_at=expires_at,
        )
        self.db.add(booking)
        self.db.flush()
        return booking

    def try_transition(
        self,
        booking_id: str,
        from_status: BookingStatus,
        to_status: BookingStatus,
    ) -> bool:
        """
        Move the booking only if it is still in `from_status`.
        Returns False when another transaction got there first.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .where(Booking.payment_status == from_status)
            .values(payment_status=to_status)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self._expire(booking_id)
        return result.rowcount == 1

    def _expire(self, booking_id: str) -> None:
        obj = self.db.identity_map.get(self.db.identity_key(Booking, booking_id))
        if obj is not None:
            self.db.expire(obj)



class BookingItemRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_by_booking(self, booking_id: str) -> list[BookingItem]:
        stmt = select(BookingItem).where(BookingItem.booking_id == booking_id)
        return list(self.db.execute(stmt).scalars().all())

    def create(
        self,
        booking_id: str,
        ticket_type_id: str,
        quantity: int,
        price: int,
        seat_id: str | None = None,
    ) -> BookingItem:
        item = BookingItem(
            booking_id=booking_id,
            ticket_type_id=ticket_type_id,
            seat_id=seat_id,
            quantity=quantity,
            price=price,
        )
        self.db.add(item)
        self.db.flush()
        return item
