from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy.orm import Session

from eventhub.application.event_service import EventService, SeatSpec, TicketTypeSpec
from eventhub.infrastructure.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)

ORGANIZER_ID = "organizer-1"


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    now = datetime.now(timezone.utc)
    target = now + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _seat_block(section: str, rows: str, seats_per_row: int) -> list[SeatSpec]:
    return [
        SeatSpec(section=section, row=row, number=str(number))
        for row in rows
        for number in range(1, seats_per_row + 1)
    ]


def _event_defs() -> list[dict]:
    return [
        {
            "title": "Summer Music Festival",
            "description": (
                "Experience the biggest music festival of the year featuring top artists "
                "from around the world. Three days of non-stop music, food, and entertainment."
            ),
            "category": "Music",
            "date": _dt(days_from_now=30, hour=18, minute=0),
            "venue": "Central Park Amphitheater",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Concert_festival_crowd_image_7174c499.png",
            "ticket_types": [
                TicketTypeSpec("General Admission", "Standard entry with access to all stages", 12000, 500),
                TicketTypeSpec("VIP Pass", "Premium access with exclusive lounge and backstage tours", 35000, 100),
                TicketTypeSpec("Early Bird", "Discounted early bird tickets", 9500, 200),
            ],
        },
        {
            "title": "NBA Finals Game 5",
            "description": (
                "Watch the championship series live! Don't miss the action as the top teams "
                "compete for the title."
            ),
            "category": "Sports",
            "date": _dt(days_from_now=12, hour=19, minute=30),
            "venue": "Madison Square Garden",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Sports_stadium_venue_image_ab925d88.png",
            "ticket_types": [
                TicketTypeSpec("Upper Bowl", "Seats in the upper level", 15000, 300),
                TicketTypeSpec("Lower Bowl", "Seats in the lower level", 30000, 150),
                TicketTypeSpec("Courtside", "Premium courtside seats", 75000, 50),
            ],
        },
        {
            "title": "Hamilton - Broadway Musical",
            "description": (
                "The story of America's Founding Father Alexander Hamilton, an immigrant from "
                "the West Indies who became George Washington's right-hand man."
            ),
            "category": "Theater",
            "date": _dt(days_from_now=20, hour=20, minute=0),
            "venue": "Richard Rodgers Theatre",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Theater_venue_image_7743119b.png",
            "ticket_types": [
                TicketTypeSpec(
                    "Orchestra", "Best seats in the house", 25000, 20,
                    seats=_seat_block("Orchestra", "AB", 10),
                ),
                TicketTypeSpec(
                    "Mezzanine", "Elevated view seats", 18000, 16,
                    seats=_seat_block("Mezzanine", "CD", 8),
                ),
            ],
        },
        {
            "title": "Tech Innovation Summit",
            "description": (
                "Join industry leaders and innovators for a day of inspiring talks, networking, "
                "and workshops on the latest emerging technologies."
            ),
            "category": "Conference",
            "date": _dt(days_from_now=45, hour=9, minute=0),
            "venue": "Javits Center",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Conference_event_image_f757b42c.png",
            "ticket_types": [
                TicketTypeSpec("Standard Pass", "Access to all keynotes and expo hall", 29900, 400),
                TicketTypeSpec("Premium Pass", "Includes workshops and networking dinner", 49900, 150),
            ],
        },
        {
            "title": "Comedy Night Live",
            "description": "An evening of stand-up comedy. Get ready for a night of laughter!",
            "category": "Comedy",
            "date": _dt(days_from_now=8, hour=20, minute=0),
            "venue": "Comedy Cellar",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Theater_venue_image_7743119b.png",
            "ticket_types": [
                TicketTypeSpec("General Seating", "First come, first served seating", 8500, 200),
                TicketTypeSpec("Reserved Table", "Reserved table for 4 people", 15000, 40),
            ],
        },
        {
            "title": "Modern Art Exhibition Opening",
            "description": (
                "Exclusive opening night of contemporary art. Includes wine reception and "
                "artist meet-and-greet."
            ),
            "category": "Arts",
            "date": _dt(days_from_now=25, hour=18, minute=0),
            "venue": "MoMA",
            "location": "New York, NY",
            "image_url": "/assets/generated_images/Theater_venue_image_7743119b.png",
            "ticket_types": [
                TicketTypeSpec("General Admission", "Exhibition access and wine reception", 5000, 300),
                TicketTypeSpec("VIP Experience", "Includes artist meet-and-greet and private tour", 15000, 50),
            ],
        },
    ]


def seed_events(db: Session) -> int:
    """Load the demo catalog unless the store already has events."""
    if EventRepository(db).count() > 0:
        logger.info("Database already seeded, skipping...")
        return 0

    service = EventService(db)
    event_defs = _event_defs()
    for item in event_defs:
        service.create_event(organizer_id=ORGANIZER_ID, **item)

    logger.info("Seeded %s demo events", len(event_defs))
    return len(event_defs)
