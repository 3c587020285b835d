from enum import Enum
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator


class EventCategory(str, Enum):
    MUSIC = "Music"
    SPORTS = "Sports"
    THEATER = "Theater"
    CONFERENCE = "Conference"
    COMEDY = "Comedy"
    ARTS = "Arts"


class SeatCreate(BaseModel):
    section: str = Field(min_length=1)
    row: str = Field(min_length=1)
    number: str = Field(min_length=1)


class TicketTypeCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: int = Field(gt=0)
    total_quantity: int = Field(gt=0)
    available_quantity: int | None = Field(default=None, ge=0)
    seats: list[SeatCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_quantities(self) -> "TicketTypeCreate":
        if self.available_quantity is not None and self.available_quantity > self.total_quantity:
            raise ValueError("available_quantity cannot exceed total_quantity")
        if len(self.seats) > self.total_quantity:
            raise ValueError("more seats than total_quantity")
        return self


class EventDetails(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: EventCategory = EventCategory.MUSIC
    date: str | None = None
    venue: str = Field(min_length=1)
    location: str = Field(min_length=1)
    image_url: str | None = None
    organizer_id: str | None = None


class EventCreate(BaseModel):
    event: EventDetails
    ticket_types: list[TicketTypeCreate] = Field(min_length=1)


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    date: str
    venue: str
    location: str
    image_url: str
    organizer_id: str


class TicketTypeResponse(BaseModel):
    id: str
    event_id: str
    name: str
    description: str
    price: int
    total_quantity: int
    available_quantity: int


class SeatResponse(BaseModel):
    id: str
    event_id: str
    section: str
    row: str
    number: str
    ticket_type_id: str
    is_available: bool


class DeleteResponse(BaseModel):
    success: bool


class CartItem(BaseModel):
    event_id: str
    ticket_type_id: str
    seat_id: str | None = None
    quantity: int = Field(gt=0)
    price: int = Field(ge=0)


class PaymentIntentRequest(BaseModel):
    amount: int = Field(gt=0)
    customer_email: EmailStr
    customer_name: str = Field(min_length=1)
    cart_items: list[CartItem] = Field(min_length=1)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    booking_id: str
    payment_intent_id: str
    amount: int
    currency: str
    provider: str
    key_id: str | None = None


class MockPaymentRequest(BaseModel):
    payment_intent_id: str
    payment_method: Literal["card", "bank"] = "card"
    payment_details: dict = Field(default_factory=dict)


class MockPaymentResponse(BaseModel):
    success: bool
    message: str
    booking_id: str
    payment_method: str
    transaction_id: str
    payment_details: dict


class PaymentConfirmRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class BookingStatusResponse(BaseModel):
    booking_id: str
    status: str


class ExpireResponse(BaseModel):
    expired: list[str]


class BookingItemResponse(BaseModel):
    id: str
    ticket_type_id: str
    seat_id: str | None = None
    quantity: int
    price: int
    ticket_type: TicketTypeResponse | None = None


class BookingResponse(BaseModel):
    id: str
    event_id: str
    customer_name: str
    customer_email: str
    total_amount: int
    payment_status: str
    payment_intent_id: str | None = None
    qr_code: str
    created_at: str
    expires_at: str | None = None
    items: list[BookingItemResponse] = Field(default_factory=list)


class BookingWithEventResponse(BookingResponse):
    event: EventResponse
