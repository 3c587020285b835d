import logging

from eventhub.domain.exceptions import (
    InsufficientInventoryError,
    SeatNotFoundError,
    SeatUnavailableError,
    TicketTypeNotFoundError,
)
from eventhub.infrastructure.db.models import BookingItem
from eventhub.infrastructure.repositories.seat_repository import SeatRepository
from eventhub.infrastructure.repositories.ticket_type_repository import TicketTypeRepository

logger = logging.getLogger(__name__)


class InventoryAdjuster:
    """
    Holds and releases ticket-type capacity and seats.

    Every write is a single conditional UPDATE, so two checkouts racing
    for the last unit cannot both succeed.
    """

    def __init__(
        self,
        ticket_type_repository: TicketTypeRepository,
        seat_repository: SeatRepository,
    ):
        self.ticket_type_repository = ticket_type_repository
        self.seat_repository = seat_repository

    def decrement_ticket_type(self, ticket_type_id: str, quantity: int) -> None:
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        if self.ticket_type_repository.try_decrement(ticket_type_id, quantity):
            return

        if self.ticket_type_repository.get(ticket_type_id) is None:
            raise TicketTypeNotFoundError(ticket_type_id)
        raise InsufficientInventoryError(ticket_type_id, quantity)

    def mark_seat_unavailable(self, seat_id: str) -> None:
        if self.seat_repository.try_claim(seat_id):
            return

        if self.seat_repository.get(seat_id) is None:
            raise SeatNotFoundError(seat_id)
        raise SeatUnavailableError(seat_id)

    def release_ticket_type(self, ticket_type_id: str, quantity: int) -> None:
        if not self.ticket_type_repository.increment(ticket_type_id, quantity):
            # Event (and its ticket types) deleted after purchase.
            logger.warning(
                "Ticket type %s no longer exists; %s tickets not returned",
                ticket_type_id,
                quantity,
            )

    def release_seat(self, seat_id: str) -> None:
        if not self.seat_repository.release(seat_id):
            logger.warning("Seat %s no longer exists; nothing to release", seat_id)

    def reserve_item(self, item: BookingItem) -> None:
        self.decrement_ticket_type(item.ticket_type_id, item.quantity)
        if item.seat_id:
            self.mark_seat_unavailable(item.seat_id)

    def release_items(self, items: list[BookingItem]) -> None:
        for item in items:
            self.release_ticket_type(item.ticket_type_id, item.quantity)
            if item.seat_id:
                self.release_seat(item.seat_id)
