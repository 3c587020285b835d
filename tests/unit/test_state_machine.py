# tests/unit/test_state_machine.py

import pytest

from eventhub.domain.state_machine import BookingStateMachine, BookingStatus
from eventhub.domain.exceptions import InvalidStateTransitionError


# ---------------------
# VALID TRANSITIONS
# ---------------------

def test_valid_happy_path():
    assert BookingStateMachine.can_transition(
        BookingStatus.PENDING,
        BookingStatus.SUCCEEDED,
    )

    assert BookingStateMachine.can_transition(
        BookingStatus.SUCCEEDED,
        BookingStatus.CANCELLED,
    )


def test_pending_can_be_released():
    allowed = BookingStateMachine.get_allowed_transitions(BookingStatus.PENDING)

    assert allowed == {
        BookingStatus.SUCCEEDED,
        BookingStatus.FAILED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }


# ---------------------
# INVALID TRANSITIONS
# ---------------------

def test_succeeded_cannot_fail():
    with pytest.raises(InvalidStateTransitionError):
        BookingStateMachine.validate_transition(
            BookingStatus.SUCCEEDED,
            BookingStatus.FAILED,
        )


def test_succeeded_cannot_return_to_pending():
    with pytest.raises(InvalidStateTransitionError) as exc_info:
        BookingStateMachine.validate_transition(
            BookingStatus.SUCCEEDED,
            BookingStatus.PENDING,
        )

    assert exc_info.value.from_state == "succeeded"
    assert exc_info.value.to_state == "pending"


@pytest.mark.parametrize(
    "status",
    [BookingStatus.FAILED, BookingStatus.CANCELLED, BookingStatus.EXPIRED],
)
def test_release_states_are_terminal(status):
    assert BookingStateMachine.is_terminal(status)

    with pytest.raises(InvalidStateTransitionError):
        BookingStateMachine.validate_transition(
            status,
            BookingStatus.SUCCEEDED,
        )


def test_invalid_type_guard():
    with pytest.raises(TypeError):
        BookingStateMachine.validate_transition(
            "pending",  # invalid type
            BookingStatus.SUCCEEDED,
        )
