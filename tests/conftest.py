from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from eventhub.api.routes.routes import get_db, get_provider
from eventhub.application.event_service import EventService, SeatSpec, TicketTypeSpec
from eventhub.infrastructure.db.models import Base
from eventhub.infrastructure.db.session import build_engine
from eventhub.infrastructure.payments.providers import MockPaymentProvider
from eventhub.main import app


@pytest.fixture
def engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider] = MockPaymentProvider
    # Not used as a context manager: startup seeding stays off.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def concert(db):
    """An unseated event with one 5000-unit ticket type of 10 tickets."""
    event, ticket_types = EventService(db).create_event(
        title="Rooftop Jazz",
        description="Late set on the roof",
        category="Music",
        date=datetime(2030, 6, 1, 20, 0, tzinfo=timezone.utc),
        venue="Skyline Terrace",
        location="Mumbai",
        ticket_types=[
            TicketTypeSpec(
                name="General",
                description="Standing",
                price=5000,
                total_quantity=10,
            ),
        ],
    )
    db.flush()
    return event, ticket_types[0]


@pytest.fixture
def theater(db):
    """A seated event: one ticket type with a row of three seats."""
    event, ticket_types = EventService(db).create_event(
        title="Macbeth",
        description="Evening performance",
        category="Theater",
        date=datetime(2030, 7, 1, 19, 0, tzinfo=timezone.utc),
        venue="Globe",
        location="London",
        ticket_types=[
            TicketTypeSpec(
                name="Stalls",
                description="Ground floor",
                price=8000,
                total_quantity=3,
                seats=[SeatSpec("Stalls", "A", str(n)) for n in range(1, 4)],
            ),
        ],
    )
    db.flush()
    seats = EventService(db).list_seats(event.id)
    return event, ticket_types[0], seats
