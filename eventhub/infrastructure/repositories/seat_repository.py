# eventhub/infrastructure/repositories/seat_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select, update

from eventhub.infrastructure.db.models import Seat


class SeatRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[Seat]:
        return list(self.db.execute(select(Seat)).scalars().all())

    def list_by_event(self, event_id: str) -> list[Seat]:
        stmt = (
            select(Seat)
            .where(Seat.event_id == event_id)
            .order_by(Seat.section, Seat.row, Seat.number)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get(self, seat_id: str) -> Seat | None:
        stmt = select(Seat).where(Seat.id == seat_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create(
        self,
        event_id: str,
        ticket_type_id: str,
        section: str,
        row: str,
        number: str,
    ) -> Seat:
        seat = Seat(
            event_id=event_id,
            ticket_type_id=ticket_type_id,
            section=section,
            row=row,
            number=number,
            is_available=True,
        )
        self.db.add(seat)
        self.db.flush()
        return seat

    def update(self, seat_id: str, **fields) -> Seat | None:
        seat = self.get(seat_id)
        if not seat:
            return None
        for name, value in fields.items():
            setattr(seat, name, value)
        self.db.flush()
        return seat

    def try_claim(self, seat_id: str) -> bool:
        """
        Flip is_available to False only if it is still True.
        """
        stmt = (
            update(Seat)
            .where(Seat.id == seat_id)
            .where(Seat.is_available.is_(True))
            .values(is_available=False)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self._expire(seat_id)
        return result.rowcount == 1

    def release(self, seat_id: str) -> bool:
        stmt = (
            update(Seat)
            .where(Seat.id == seat_id)
            .values(is_available=True)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self._expire(seat_id)
        return result.rowcount == 1

    def _expire(self, seat_id: str) -> None:
        obj = self.db.identity_map.get(self.db.identity_key(Seat, seat_id))
        if obj is not None:
            self.db.expire(obj)
