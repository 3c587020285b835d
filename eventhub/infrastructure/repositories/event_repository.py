# eventhub/infrastructure/repositories/event_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import delete, func, select

from eventhub.infrastructure.db.models import Event, Seat, TicketType


class EventRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[Event]:
        stmt = select(Event).order_by(Event.date)
        return list(self.db.execute(stmt).scalars().all())

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(Event)).scalar_one()

    def get(self, event_id: str) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create(
        self,
        title: str,
        description: str,
        category: str,
        date: datetime,
        venue: str,
        location: str,
        image_url: str,
        organizer_id: str,
    ) -> Event:
        event = Event(
            title=title,
            description=description,
            category=category,
            date=date,
            venue=venue,
            location=location,
            image_url=image_url,
            organizer_id=organizer_id,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def delete(self, event_id: str) -> bool:
        """
        Delete an event with its ticket types and seats.
        Bookings referencing the event are left in place.
        """
        event = self.get(event_id)
        if not event:
            return False

        self.db.execute(delete(Seat).where(Seat.event_id == event_id))
        self.db.execute(delete(TicketType).where(TicketType.event_id == event_id))
        self.db.delete(event)
        self.db.flush()
        return True
