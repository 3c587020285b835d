from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session

from eventhub.domain.exceptions import EventNotFoundError
from eventhub.infrastructure.db.models import Event, Seat, TicketType
from eventhub.infrastructure.repositories.event_repository import EventRepository
from eventhub.infrastructure.repositories.seat_repository import SeatRepository
from eventhub.infrastructure.repositories.ticket_type_repository import TicketTypeRepository

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_URL = "/assets/generated_images/Concert_festival_crowd_image_7174c499.png"
DEFAULT_ORGANIZER_ID = "organizer-1"


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class SeatSpec:
    section: str
    row: str
    number: str


@dataclass(frozen=True)
class TicketTypeSpec:
    name: str
    description: str
    price: int
    total_quantity: int
    available_quantity: int | None = None
    seats: list[SeatSpec] = field(default_factory=list)


class EventService:
    """Organizer-facing catalog operations."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repository = EventRepository(db)
        self.ticket_type_repository = TicketTypeRepository(db)
        self.seat_repository = SeatRepository(db)

    def list_events(self) -> list[Event]:
        return self.event_repository.list_all()

    def get_event(self, event_id: str) -> Event:
        event = self.event_repository.get(event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event

    def create_event(
        self,
        title: str,
        description: str,
        category: str,
        date: datetime,
        venue: str,
        location: str,
        ticket_types: list[TicketTypeSpec],
        image_url: str | None = None,
        organizer_id: str | None = None,
    ) -> tuple[Event, list[TicketType]]:
        event = self.event_repository.create(
            title=title,
            description=description,
            category=category,
            date=as_utc(date),
            venue=venue,
            location=location,
            image_url=image_url or DEFAULT_IMAGE_URL,
            organizer_id=organizer_id or DEFAULT_ORGANIZER_ID,
        )

        created = []
        for spec in ticket_types:
            ticket_type = self.ticket_type_repository.create(
                event_id=event.id,
                name=spec.name,
                description=spec.description,
                price=spec.price,
                total_quantity=spec.total_quantity,
                available_quantity=spec.available_quantity,
            )
            # Seats are only ever built under their own ticket type,
            # which keeps seat and ticket type on the same event.
            for seat in spec.seats:
                self.seat_repository.create(
                    event_id=event.id,
                    ticket_type_id=ticket_type.id,
                    section=seat.section,
                    row=seat.row,
                    number=seat.number,
                )
            created.append(ticket_type)

        logger.info(
            "Event %s (%s) created with %s ticket types",
            event.id,
            event.title,
            len(created),
        )
        return event, created

    def delete_event(self, event_id: str) -> None:
        if not self.event_repository.delete(event_id):
            raise EventNotFoundError(event_id)
        logger.info("Event %s deleted with its ticket types and seats", event_id)

    def list_ticket_types(self, event_id: str) -> list[TicketType]:
        return self.ticket_type_repository.list_by_event(event_id)

    def list_seats(self, event_id: str) -> list[Seat]:
        return self.seat_repository.list_by_event(event_id)
