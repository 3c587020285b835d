# eventhub/infrastructure/db/models.py

from sqlalchemy import (
    Boolean,
    String,
    Integer,
    DateTime,
    Enum,
    Text,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from uuid import uuid4

from eventhub.infrastructure.db.session import Base
from eventhub.domain.state_machine import BookingStatus


def _uuid() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    organizer_id: Mapped[str] = mapped_column(String(64), nullable=False)


class TicketType(Base):
    """
    Purchasable admission category.
    available_quantity is only ever changed through conditional updates.
    """

    __tablename__ = "ticket_types"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    # No foreign key: deleting an event must leave bookings untouched.
    event_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_ticket_type_price_nonnegative"),
        CheckConstraint("total_quantity >= 0", name="ck_ticket_type_total_nonnegative"),
        CheckConstraint("available_quantity >= 0", name="ck_ticket_type_available_nonnegative"),
        CheckConstraint(
            "available_quantity <= total_quantity",
            name="ck_ticket_type_available_lte_total",
        ),
    )


class Seat(Base):
    __tablename__ = "seats"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    event_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(64), nullable=False)
    row: Mapped[str] = mapped_column(String(16), nullable=False)
    number: Mapped[str] = mapped_column(String(16), nullable=False)
    ticket_type_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "section",
            "row",
            "number",
            name="uq_seat_position",
        ),
    )


class Booking(Base):
    """
    Booking table reflecting domain state.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    event_id: Mapped[str] = mapped_column(String(36), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            name="booking_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    payment_intent_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    provider_payment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    qr_code: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("payment_intent_id", name="uq_booking_payment_intent_id"),
        UniqueConstraint("provider_payment_id", name="uq_booking_provider_payment_id"),
        CheckConstraint("total_amount > 0", name="ck_booking_total_positive"),
    )


class BookingItem(Base):
    __tablename__ = "booking_items"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_uuid,
    )
    booking_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    ticket_type_id: Mapped[str] = mapped_column(String(36), nullable=False)
    seat_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Unit price at purchase time, never re-read from the ticket type.
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_booking_item_quantity_positive"),
    )
