from contextlib import contextmanager
from datetime import datetime, timezone
import logging
import time
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eventhub.application.booking_service import BookingService
from eventhub.application.checkout_service import CartLine, CheckoutService
from eventhub.application.event_service import (
    EventService,
    SeatSpec,
    TicketTypeSpec,
    as_utc,
)
from eventhub.api.schemas.schemas import (
    BookingItemResponse,
    BookingResponse,
    BookingStatusResponse,
    BookingWithEventResponse,
    DeleteResponse,
    EventCreate,
    EventResponse,
    ExpireResponse,
    MockPaymentRequest,
    MockPaymentResponse,
    PaymentConfirmRequest,
    PaymentIntentRequest,
    PaymentIntentResponse,
    SeatResponse,
    TicketTypeResponse,
)
from eventhub.domain.exceptions import (
    AmountMismatchError,
    BookingNotFoundError,
    CartValidationError,
    EventNotFoundError,
    InsufficientInventoryError,
    InvalidStateTransitionError,
    MockPaymentsDisabledError,
    PaymentProviderError,
    PaymentVerificationError,
    PriceMismatchError,
    SeatNotFoundError,
    SeatUnavailableError,
    TicketingError,
    TicketTypeNotFoundError,
)
from eventhub.domain.state_machine import BookingStatus
from eventhub.infrastructure import config
from eventhub.infrastructure.db.models import Booking, BookingItem, Event, Seat, TicketType
from eventhub.infrastructure.db.session import SessionLocal
from eventhub.infrastructure.payments.providers import (
    MOCK_INTENT_PREFIX,
    PaymentProvider,
    get_payment_provider,
)
from eventhub.infrastructure.repositories.booking_repository import (
    BookingItemRepository,
    BookingRepository,
)
from eventhub.infrastructure.repositories.ticket_type_repository import TicketTypeRepository


router = APIRouter()
logger = logging.getLogger(__name__)

_ERROR_STATUS_CODES: dict[type[TicketingError], int] = {
    EventNotFoundError: status.HTTP_404_NOT_FOUND,
    TicketTypeNotFoundError: status.HTTP_404_NOT_FOUND,
    SeatNotFoundError: status.HTTP_404_NOT_FOUND,
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientInventoryError: status.HTTP_409_CONFLICT,
    SeatUnavailableError: status.HTTP_409_CONFLICT,
    PriceMismatchError: status.HTTP_409_CONFLICT,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    AmountMismatchError: status.HTTP_400_BAD_REQUEST,
    CartValidationError: status.HTTP_400_BAD_REQUEST,
    PaymentVerificationError: status.HTTP_400_BAD_REQUEST,
    MockPaymentsDisabledError: status.HTTP_400_BAD_REQUEST,
    PaymentProviderError: status.HTTP_502_BAD_GATEWAY,
}


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def _committing(db: Session):
    """
    Commit, or roll back on error, before the endpoint returns.

    Dependency teardown runs on another worker thread, and an open SQLite
    write transaction must not wait for one.
    """
    try:
        yield
    except Exception:
        db.rollback()
        raise
    db.commit()


def get_provider() -> PaymentProvider:
    return get_payment_provider()


def _http_error(exc: TicketingError) -> HTTPException:
    status_code = _ERROR_STATUS_CODES.get(
        type(exc),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return HTTPException(status_code=status_code, detail=str(exc))


def _iso(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


def _parse_event_date(raw: str | None) -> datetime:
    if not raw:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format. Use ISO format.",
        ) from exc


def _event_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        category=event.category,
        date=_iso(event.date),
        venue=event.venue,
        location=event.location,
        image_url=event.image_url,
        organizer_id=event.organizer_id,
    )


def _ticket_type_response(ticket_type: TicketType) -> TicketTypeResponse:
    return TicketTypeResponse(
        id=ticket_type.id,
        event_id=ticket_type.event_id,
        name=ticket_type.name,
        description=ticket_type.description,
        price=ticket_type.price,
        total_quantity=ticket_type.total_quantity,
        available_quantity=ticket_type.available_quantity,
    )


def _seat_response(seat: Seat) -> SeatResponse:
    return SeatResponse(
        id=seat.id,
        event_id=seat.event_id,
        section=seat.section,
        row=seat.row,
        number=seat.number,
        ticket_type_id=seat.ticket_type_id,
        is_available=seat.is_available,
    )


def _booking_fields(
    booking: Booking,
    items: list[BookingItem],
    ticket_types: TicketTypeRepository,
) -> dict:
    return {
        "id": booking.id,
        "event_id": booking.event_id,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "total_amount": booking.total_amount,
        "payment_status": booking.payment_status.value,
        "payment_intent_id": booking.payment_intent_id,
        "qr_code": booking.qr_code,
        "created_at": _iso(booking.created_at),
        "expires_at": _iso(booking.expires_at),
        "items": [
            BookingItemResponse(
                id=item.id,
                ticket_type_id=item.ticket_type_id,
                seat_id=item.seat_id,
                quantity=item.quantity,
                price=item.price,
                ticket_type=(
                    _ticket_type_response(ticket_type)
                    if (ticket_type := ticket_types.get(item.ticket_type_id))
                    else None
                ),
            )
            for item in items
        ],
    }


def _masked_payment_details(method: str, details: dict) -> dict:
    if method == "card":
        return {
            "type": "card",
            "last4": str(details.get("last4", ""))[-4:],
            "cardholder_name": details.get("cardholder_name"),
        }
    return {
        "type": "bank",
        "bank_name": details.get("bank_name"),
        "account_last4": str(details.get("account_number", ""))[-4:],
    }


@router.get("/health")
def health():
    return {"message": "EventHub ticketing service is running"}


@router.get("/events", response_model=list[EventResponse])
def list_events(db: Session = Depends(get_db)):
    events = EventService(db).list_events()
    logger.info("Returning %s events", len(events))
    return [_event_response(event) for event in events]


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: str, db: Session = Depends(get_db)):
    try:
        event = EventService(db).get_event(event_id)
    except TicketingError as exc:
        raise _http_error(exc) from exc
    return _event_response(event)


@router.post("/events", response_model=EventResponse)
def create_event(request: EventCreate, db: Session = Depends(get_db)):
    details = request.event
    event_date = _parse_event_date(details.date)
    with _committing(db):
        event, _ = EventService(db).create_event(
            title=details.title,
            description=details.description,
            category=details.category.value,
            date=event_date,
            venue=details.venue,
            location=details.location,
            image_url=details.image_url,
            organizer_id=details.organizer_id,
            ticket_types=[
                TicketTypeSpec(
                    name=ticket_type.name,
                    description=ticket_type.description,
                    price=ticket_type.price,
                    total_quantity=ticket_type.total_quantity,
                    available_quantity=ticket_type.available_quantity,
                    seats=[
                        SeatSpec(section=seat.section, row=seat.row, number=seat.number)
                        for seat in ticket_type.seats
                    ],
                )
                for ticket_type in request.ticket_types
            ],
        )
    return _event_response(event)


@router.delete("/events/{event_id}", response_model=DeleteResponse)
def delete_event(event_id: str, db: Session = Depends(get_db)):
    try:
        with _committing(db):
            EventService(db).delete_event(event_id)
    except TicketingError as exc:
        raise _http_error(exc) from exc
    return DeleteResponse(success=True)


@router.get("/events/{event_id}/ticket-types", response_model=list[TicketTypeResponse])
def list_ticket_types(event_id: str, db: Session = Depends(get_db)):
    return [
        _ticket_type_response(ticket_type)
        for ticket_type in EventService(db).list_ticket_types(event_id)
    ]


@router.get("/events/{event_id}/seats", response_model=list[SeatResponse])
def list_seats(event_id: str, db: Session = Depends(get_db)):
    return [_seat_response(seat) for seat in EventService(db).list_seats(event_id)]


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    request: PaymentIntentRequest,
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_provider),
):
    service = CheckoutService(db, payment_provider=provider)
    try:
        with _committing(db):
            result = service.checkout(
                amount=request.amount,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                lines=[
                    CartLine(
                        event_id=item.event_id,
                        ticket_type_id=item.ticket_type_id,
                        seat_id=item.seat_id,
                        quantity=item.quantity,
                        price=item.price,
                    )
                    for item in request.cart_items
                ],
            )
    except TicketingError as exc:
        logger.warning("Checkout rejected for %s: %s", request.customer_email, exc)
        raise _http_error(exc) from exc

    return PaymentIntentResponse(
        client_secret=result.intent.client_secret,
        booking_id=result.booking.id,
        payment_intent_id=result.intent.id,
        amount=result.totals.total,
        currency=result.intent.currency,
        provider=result.provider_name,
        key_id=result.provider_key,
    )


@router.post("/confirm-mock-payment", response_model=MockPaymentResponse)
def confirm_mock_payment(
    request: MockPaymentRequest,
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_provider),
):
    try:
        if provider.name != "mock":
            raise MockPaymentsDisabledError("Mock payments are disabled")
        if not request.payment_intent_id.startswith(MOCK_INTENT_PREFIX):
            raise PaymentVerificationError("Invalid mock payment intent ID")

        service = BookingService(db)
        service.get_by_payment_intent(request.payment_intent_id)

        delay = config.mock_payment_delay_seconds()
        if delay > 0:
            time.sleep(delay)

        with _committing(db):
            booking = service.confirm_by_payment_intent(
                request.payment_intent_id,
                BookingStatus.SUCCEEDED,
            )
    except TicketingError as exc:
        raise _http_error(exc) from exc

    payment_details = _masked_payment_details(
        request.payment_method,
        request.payment_details,
    )
    logger.info(
        "Mock payment processed: intent=%s booking=%s amount=%s method=%s",
        request.payment_intent_id,
        booking.id,
        booking.total_amount,
        request.payment_method,
    )
    return MockPaymentResponse(
        success=True,
        message="Mock payment confirmed successfully",
        booking_id=booking.id,
        payment_method=request.payment_method,
        transaction_id=f"txn_mock_{uuid4().hex[:16]}",
        payment_details=payment_details,
    )


@router.post("/confirm-payment", response_model=BookingStatusResponse)
def confirm_payment(
    request: PaymentConfirmRequest,
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_provider),
):
    service = BookingService(db)
    try:
        booking = service.get_by_payment_intent(request.razorpay_order_id)
    except TicketingError as exc:
        raise _http_error(exc) from exc

    if booking.payment_status == BookingStatus.SUCCEEDED:
        if booking.provider_payment_id == request.razorpay_payment_id:
            return BookingStatusResponse(booking_id=booking.id, status=booking.payment_status.value)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Booking already paid with another payment id.",
        )

    already_used = BookingRepository(db).get_by_provider_payment_id(request.razorpay_payment_id)
    if already_used and already_used.id != booking.id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payment id already consumed by another booking.",
        )

    try:
        provider.verify_payment(
            payment_intent_id=request.razorpay_order_id,
            payment_id=request.razorpay_payment_id,
            signature=request.razorpay_signature,
        )
    except PaymentVerificationError as exc:
        with _committing(db):
            try:
                service.confirm(booking.id, BookingStatus.FAILED)
            except InvalidStateTransitionError:
                logger.warning("Booking %s could not be marked failed", booking.id)
        raise _http_error(exc) from exc

    try:
        with _committing(db):
            booking = service.confirm(booking.id, BookingStatus.SUCCEEDED)
            if booking.provider_payment_id not in (None, request.razorpay_payment_id):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Booking already paid with another payment id.",
                )
            booking.provider_payment_id = request.razorpay_payment_id
    except TicketingError as exc:
        raise _http_error(exc) from exc

    return BookingStatusResponse(booking_id=booking.id, status=booking.payment_status.value)


@router.post("/bookings/expire", response_model=ExpireResponse)
def expire_bookings(db: Session = Depends(get_db)):
    with _committing(db):
        expired = BookingService(db).expire_stale()
    return ExpireResponse(expired=[booking.id for booking in expired])


@router.post("/bookings/{booking_id}/cancel", response_model=BookingStatusResponse)
def cancel_booking(booking_id: str, db: Session = Depends(get_db)):
    try:
        with _committing(db):
            booking = BookingService(db).cancel(booking_id)
    except TicketingError as exc:
        raise _http_error(exc) from exc
    return BookingStatusResponse(booking_id=booking.id, status=booking.payment_status.value)


@router.get("/bookings", response_model=list[BookingWithEventResponse])
def list_bookings(db: Session = Depends(get_db)):
    """Issued tickets: succeeded bookings joined with event and ticket types."""
    events = EventService(db)
    items = BookingItemRepository(db)
    ticket_types = TicketTypeRepository(db)

    results = []
    for booking in BookingRepository(db).list_by_status(BookingStatus.SUCCEEDED):
        try:
            event = events.get_event(booking.event_id)
        except EventNotFoundError:
            logger.warning(
                "Event not found for booking %s, event_id=%s",
                booking.id,
                booking.event_id,
            )
            continue

        results.append(
            BookingWithEventResponse(
                event=_event_response(event),
                **_booking_fields(booking, items.list_by_booking(booking.id), ticket_types),
            )
        )
    return results


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, db: Session = Depends(get_db)):
    try:
        booking = BookingService(db).get(booking_id)
    except TicketingError as exc:
        raise _http_error(exc) from exc
    return BookingResponse(
        **_booking_fields(
            booking,
            BookingItemRepository(db).list_by_booking(booking.id),
            TicketTypeRepository(db),
        )
    )


@router.get("/debug/bookings")
def debug_bookings(db: Session = Depends(get_db)):
    if not config.is_development():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    bookings = BookingRepository(db).list_all()
    events = EventService(db).list_events()
    return {
        "bookings": [
            {
                "id": booking.id,
                "event_id": booking.event_id,
                "status": booking.payment_status.value,
                "total_amount": booking.total_amount,
                "payment_intent_id": booking.payment_intent_id,
            }
            for booking in bookings
        ],
        "events": [{"id": event.id, "title": event.title} for event in events],
        "total_bookings": len(bookings),
        "successful_bookings": sum(
            1 for booking in bookings if booking.payment_status == BookingStatus.SUCCEEDED
        ),
    }
