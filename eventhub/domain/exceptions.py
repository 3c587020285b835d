

class TicketingError(Exception):
    """
    Base exception for all domain-level errors
    inside the EventHub ticketing service.
    """


class InvalidStateTransitionError(TicketingError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class InsufficientInventoryError(TicketingError):
    """Raised when a ticket type cannot cover the requested quantity."""

    def __init__(self, ticket_type_id: str, requested: int):
        self.ticket_type_id = ticket_type_id
        self.requested = requested
        super().__init__(
            f"Not enough tickets left for ticket type {ticket_type_id} "
            f"(requested {requested})"
        )


class SeatUnavailableError(TicketingError):
    """Raised when a seat has already been taken."""

    def __init__(self, seat_id: str):
        self.seat_id = seat_id
        super().__init__(f"Seat {seat_id} is no longer available")


class EventNotFoundError(TicketingError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__("Event not found")


class TicketTypeNotFoundError(TicketingError):
    def __init__(self, ticket_type_id: str):
        self.ticket_type_id = ticket_type_id
        super().__init__(f"Ticket type {ticket_type_id} not found")


class SeatNotFoundError(TicketingError):
    def __init__(self, seat_id: str):
        self.seat_id = seat_id
        super().__init__(f"Seat {seat_id} not found")


class BookingNotFoundError(TicketingError):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__("Booking not found")


class CartValidationError(TicketingError):
    """Raised when a cart line is inconsistent with the catalog."""


class PriceMismatchError(TicketingError):
    """Raised when a cart line carries a price other than the stored one."""

    def __init__(self, ticket_type_id: str, expected: int, received: int):
        self.ticket_type_id = ticket_type_id
        self.expected = expected
        self.received = received
        super().__init__(
            f"Price for ticket type {ticket_type_id} changed: "
            f"expected {expected}, received {received}"
        )


class AmountMismatchError(TicketingError):
    """Raised when the client-side total disagrees with the server total."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Amount does not match cart total: expected {expected}, received {received}"
        )


class PaymentProviderError(TicketingError):
    """Raised when the payment provider call fails."""


class PaymentVerificationError(TicketingError):
    """Raised when a payment confirmation cannot be verified."""


class MockPaymentsDisabledError(TicketingError):
    """Raised when the mock confirmation path is used outside mock mode."""
