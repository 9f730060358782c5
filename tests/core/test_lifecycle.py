"""Request status transitions."""

import pytest

from media_relay.core.exceptions import InvalidTransitionError
from media_relay.core.lifecycle import (
    can_transition,
    ensure_admin_actionable,
    is_terminal,
    validate_initial_status,
    validate_transition,
)
from media_relay.core.models import RequestStatus as S


@pytest.mark.parametrize(
    "current, new",
    [
        (S.PENDING, S.SUBMITTED),
        (S.PENDING, S.FAILED),
        (S.PENDING, S.REJECTED),
        (S.FAILED, S.SUBMITTED),
        (S.FAILED, S.FAILED),
        (S.FAILED, S.REJECTED),
        (S.SUBMITTED, S.APPROVED),
    ],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)
    validate_transition(current, new)


@pytest.mark.parametrize("current", list(S))
def test_nothing_re_enters_pending(current):
    assert not can_transition(current, S.PENDING)


@pytest.mark.parametrize("terminal", [S.APPROVED, S.REJECTED])
def test_terminal_statuses_have_no_exit(terminal):
    assert is_terminal(terminal)
    for status in S:
        assert not can_transition(terminal, status)


def test_submitted_only_moves_to_approved():
    with pytest.raises(InvalidTransitionError, match="SUBMITTED to FAILED"):
        validate_transition(S.SUBMITTED, S.FAILED)


def test_requests_cannot_be_created_approved():
    with pytest.raises(InvalidTransitionError):
        validate_initial_status(S.APPROVED)
    validate_initial_status(S.PENDING)


@pytest.mark.parametrize("status", [S.SUBMITTED, S.APPROVED, S.REJECTED])
def test_admin_actions_need_pending_or_failed(status):
    with pytest.raises(InvalidTransitionError, match="PENDING or FAILED status to approve"):
        ensure_admin_actionable(status, "approve")
