# eventhub/infrastructure/repositories/ticket_type_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import case, select, update

from eventhub.infrastructure.db.models import TicketType


class TicketTypeRepository:

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[TicketType]:
        return list(self.db.execute(select(TicketType)).scalars().all())

    def list_by_event(self, event_id: str) -> list[TicketType]:
        stmt = (
            select(TicketType)
            .where(TicketType.event_id == event_id)
            .order_by(TicketType.price)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get(self, ticket_type_id: str) -> TicketType | None:
        stmt = select(TicketType).where(TicketType.id == ticket_type_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create(
        self,
        event_id: str,
        name: str,
        description: str,
        price: int,
        total_quantity: int,
        available_quantity: int | None = None,
    ) -> TicketType:
        ticket_type = TicketType(
            event_id=event_id,
            name=name,
            description=description,
            price=price,
            total_quantity=total_quantity,
            available_quantity=(
                total_quantity if available_quantity is None else available_quantity
            ),
        )
        self.db.add(ticket_type)
        self.db.flush()
        return ticket_type

    def update(self, ticket_type_id: str, **fields) -> TicketType | None:
        ticket_type = self.get(ticket_type_id)
        if not ticket_type:
            return None
        for name, value in fields.items():
            setattr(ticket_type, name, value)
        self.db.flush()
        return ticket_type

    def try_decrement(self, ticket_type_id: str, quantity: int) -> bool:
        """
        Compare-and-decrement in a single statement.
        Returns False when fewer than `quantity` tickets remain.
        """
        stmt = (
            update(TicketType)
            .where(TicketType.id == ticket_type_id)
            .where(TicketType.available_quantity >= quantity)
            .values(available_quantity=TicketType.available_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self._expire(ticket_type_id)
        return result.rowcount == 1

    def increment(self, ticket_type_id: str, quantity: int) -> bool:
        restored = TicketType.available_quantity + quantity
        stmt = (
            update(TicketType)
            .where(TicketType.id == ticket_type_id)
            .values(
                available_quantity=case(
                    (restored > TicketType.total_quantity, TicketType.total_quantity),
                    else_=restored,
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self._expire(ticket_type_id)
        return result.rowcount == 1

    def _expire(self, ticket_type_id: str) -> None:
        # A loaded instance must re-read the value written in SQL.
        obj = self.db.identity_map.get(self.db.identity_key(TicketType, ticket_type_id))
        if obj is not None:
            self.db.expire(obj)
