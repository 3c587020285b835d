import pytest


def _create_event(client, ticket_types=None):
    payload = {
        "event": {
            "title": "Indie Night",
            "description": "Three bands, one stage",
            "category": "Music",
            "date": "2030-05-01T19:30:00+00:00",
            "venue": "Blue Frog",
            "location": "Mumbai",
        },
        "ticket_types": ticket_types
        or [
            {
                "name": "General",
                "description": "Standing",
                "price": 5000,
                "total_quantity": 4,
            }
        ],
    }
    response = client.post("/events", json=payload)
    assert response.status_code == 200
    event = response.json()
    ticket_types = client.get(f"/events/{event['id']}/ticket-types").json()
    return event, ticket_types


def _checkout(client, event_id, ticket_type, quantity, amount=None, seat_id=None):
    subtotal = ticket_type["price"] * quantity
    return client.post(
        "/create-payment-intent",
        json={
            "amount": amount if amount is not None else subtotal + subtotal // 10,
            "customer_email": "test@example.com",
            "customer_name": "Test User",
            "cart_items": [
                {
                    "event_id": event_id,
                    "ticket_type_id": ticket_type["id"],
                    "seat_id": seat_id,
                    "quantity": quantity,
                    "price": ticket_type["price"],
                }
            ],
        },
    )


def _remaining(client, event_id):
    return client.get(f"/events/{event_id}/ticket-types").json()[0]["available_quantity"]


def test_booking_flow(client):
    event, ticket_types = _create_event(client)
    general = ticket_types[0]

    response = _checkout(client, event["id"], general, quantity=2, amount=11000)

    assert response.status_code == 200
    body = response.json()
    assert body["client_secret"].endswith("_secret_mock")
    assert body["amount"] == 11000
    assert body["provider"] == "mock"
    booking_id = body["booking_id"]

    booking = client.get(f"/bookings/{booking_id}").json()
    assert booking["payment_status"] == "pending"
    assert booking["total_amount"] == 11000
    assert booking["qr_code"] == f"BOOKING-{body['payment_intent_id']}"
    assert _remaining(client, event["id"]) == 2

    # Pending bookings are not issued tickets yet.
    assert client.get("/bookings").json() == []

    pay_response = client.post(
        "/confirm-mock-payment",
        json={
            "payment_intent_id": body["payment_intent_id"],
            "payment_method": "card",
            "payment_details": {"last4": "4242", "cardholder_name": "Test User"},
        },
    )
    assert pay_response.status_code == 200
    paid = pay_response.json()
    assert paid["success"] is True
    assert paid["booking_id"] == booking_id
    assert paid["transaction_id"].startswith("txn_mock_")
    assert paid["payment_details"] == {
        "type": "card",
        "last4": "4242",
        "cardholder_name": "Test User",
    }

    tickets = client.get("/bookings").json()
    assert len(tickets) == 1
    assert tickets[0]["id"] == booking_id
    assert tickets[0]["event"]["title"] == "Indie Night"
    assert tickets[0]["items"][0]["ticket_type"]["name"] == "General"
    assert tickets[0]["items"][0]["price"] == 5000


def test_repeat_confirmation_keeps_inventory(client):
    event, ticket_types = _create_event(client)
    body = _checkout(client, event["id"], ticket_types[0], quantity=1).json()
    confirm = {"payment_intent_id": body["payment_intent_id"]}

    assert client.post("/confirm-mock-payment", json=confirm).status_code == 200
    assert client.post("/confirm-mock-payment", json=confirm).status_code == 200

    assert client.get(f"/bookings/{body['booking_id']}").json()["payment_status"] == "succeeded"
    assert _remaining(client, event["id"]) == 3


def test_oversell_rejected(client):
    event, ticket_types = _create_event(client)

    response = _checkout(client, event["id"], ticket_types[0], quantity=5)

    assert response.status_code == 409
    assert _remaining(client, event["id"]) == 4


def test_partial_holds_roll_back(client):
    event, ticket_types = _create_event(client)
    general = ticket_types[0]
    line = {
        "event_id": event["id"],
        "ticket_type_id": general["id"],
        "quantity": 3,
        "price": 5000,
    }

    # Each line fits on its own; together they exceed the four tickets left.
    response = client.post(
        "/create-payment-intent",
        json={
            "amount": 33000,
            "customer_email": "test@example.com",
            "customer_name": "Test User",
            "cart_items": [line, line],
        },
    )

    assert response.status_code == 409
    assert _remaining(client, event["id"]) == 4


def test_wrong_amount_rejected(client):
    event, ticket_types = _create_event(client)

    response = _checkout(client, event["id"], ticket_types[0], quantity=1, amount=5000)

    assert response.status_code == 400
    assert "Amount does not match" in response.json()["detail"]


def test_missing_fields_rejected(client):
    response = client.post(
        "/create-payment-intent",
        json={"amount": 5500, "customer_name": "Test User", "cart_items": []},
    )

    assert response.status_code == 422


@pytest.mark.parametrize("email", ["a@b", "<script>@x", "no-at-sign", "two@@example.com"])
def test_malformed_email_rejected(client, email):
    event, ticket_types = _create_event(client)
    general = ticket_types[0]

    response = client.post(
        "/create-payment-intent",
        json={
            "amount": 5500,
            "customer_email": email,
            "customer_name": "Test User",
            "cart_items": [
                {
                    "event_id": event["id"],
                    "ticket_type_id": general["id"],
                    "quantity": 1,
                    "price": 5000,
                }
            ],
        },
    )

    assert response.status_code == 422
    assert _remaining(client, event["id"]) == 4


def test_mock_confirmation_validation(client):
    bad_prefix = client.post("/confirm-mock-payment", json={"payment_intent_id": "pi_live_123"})
    unknown = client.post("/confirm-mock-payment", json={"payment_intent_id": "pi_mock_unknown"})

    assert bad_prefix.status_code == 400
    assert unknown.status_code == 404


def test_seat_double_booking_rejected(client):
    event, ticket_types = _create_event(
        client,
        ticket_types=[
            {
                "name": "Balcony",
                "description": "Upper level",
                "price": 12000,
                "total_quantity": 2,
                "seats": [
                    {"section": "Balcony", "row": "A", "number": "1"},
                    {"section": "Balcony", "row": "A", "number": "2"},
                ],
            }
        ],
    )
    seats = client.get(f"/events/{event['id']}/seats").json()
    seat_id = seats[0]["id"]

    first = _checkout(client, event["id"], ticket_types[0], quantity=1, seat_id=seat_id)
    second = _checkout(client, event["id"], ticket_types[0], quantity=1, seat_id=seat_id)

    assert first.status_code == 200
    assert second.status_code == 409
    seats = {seat["id"]: seat for seat in client.get(f"/events/{event['id']}/seats").json()}
    assert seats[seat_id]["is_available"] is False
    assert _remaining(client, event["id"]) == 1


def test_cancel_releases_tickets(client):
    event, ticket_types = _create_event(client)
    body = _checkout(client, event["id"], ticket_types[0], quantity=3).json()

    response = client.post(f"/bookings/{body['booking_id']}/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert _remaining(client, event["id"]) == 4

    again = client.post(
        "/confirm-mock-payment",
        json={"payment_intent_id": body["payment_intent_id"]},
    )
    assert again.status_code == 409


def test_expire_endpoint_with_nothing_due(client):
    event, ticket_types = _create_event(client)
    _checkout(client, event["id"], ticket_types[0], quantity=1)

    response = client.post("/bookings/expire")

    assert response.status_code == 200
    assert response.json() == {"expired": []}
    assert _remaining(client, event["id"]) == 3


def test_debug_bookings_hidden_outside_development(client, monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    assert client.get("/debug/bookings").status_code == 404

    monkeypatch.setenv("APP_ENV", "development")
    response = client.get("/debug/bookings")
    assert response.status_code == 200
    assert response.json()["total_bookings"] == 0
