# This project was developed with assistance from AI tools.
"""Tests for the application status lifecycle and transition service."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from db import ActivityLog, Notification
from db.enums import ApplicationStatus, NotificationType

from app_tracker.services.application import (
    InvalidTransitionError,
    StaleUpdateError,
    transition_status,
)

from .functional.data_factory import make_app_alice_approved, make_app_alice_pending
from .functional.mock_db import make_mock_session, make_result, make_sequenced_session
from .functional.personas import ALICE_USER_ID, admin, reviewer_rita

S = ApplicationStatus


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (S.PENDING, S.UNDER_REVIEW, True),
        (S.PENDING, S.REJECTED, True),
        (S.PENDING, S.APPROVED, False),
        (S.UNDER_REVIEW, S.APPROVED, True),
        (S.UNDER_REVIEW, S.PENDING, True),
        (S.APPROVED, S.REJECTED, False),
        (S.REJECTED, S.PENDING, False),
        (S.PENDING, S.PENDING, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert (target in S.valid_transitions()[current]) is allowed


def test_terminal_statuses_have_no_exits():
    for status in S.terminal_statuses():
        assert S.valid_transitions()[status] == frozenset()


def test_status_label():
    assert S.UNDER_REVIEW.label == "under review"


# ---------------------------------------------------------------------------
# transition_status
# ---------------------------------------------------------------------------


def _added(session, cls):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], cls)]


@pytest.mark.asyncio
async def test_transition_updates_logs_and_notifies(hub):
    app = make_app_alice_pending()
    session = make_mock_session(single=app)
    received = []
    hub.publish = MagicMock(side_effect=received.append)

    result = await transition_status(session, reviewer_rita(), 101, S.UNDER_REVIEW)

    assert result is app
    assert app.status == S.UNDER_REVIEW
    assert app.updated_at > datetime(2026, 1, 15, tzinfo=UTC)
    session.commit.assert_awaited_once()

    [activity] = _added(session, ActivityLog)
    assert activity.action == "status_updated"
    assert activity.details == {"old_status": "pending", "new_status": "under_review"}

    [notification] = _added(session, Notification)
    assert notification.user_id == ALICE_USER_ID
    assert notification.type == NotificationType.STATUS_CHANGE
    assert "under review" in notification.message

    assert [e.user_id for e in received] == [ALICE_USER_ID]
    assert received[0].event == "INSERT"


@pytest.mark.asyncio
async def test_invalid_transition_leaves_status_unchanged():
    app = make_app_alice_approved()
    session = make_mock_session(single=app)

    with pytest.raises(InvalidTransitionError, match="terminal"):
        await transition_status(session, admin(), 102, S.PENDING)

    assert app.status == S.APPROVED
    session.commit.assert_not_awaited()
    session.add.assert_not_called()


@pytest.mark.asyncio
async def test_same_status_is_rejected():
    app = make_app_alice_pending()
    session = make_mock_session(single=app)

    with pytest.raises(InvalidTransitionError, match="Allowed"):
        await transition_status(session, admin(), 101, S.PENDING)


@pytest.mark.asyncio
async def test_stale_precondition_raises_before_validation():
    app = make_app_alice_pending()
    session = make_mock_session(single=app)
    stale = datetime(2026, 1, 1, tzinfo=UTC)

    with pytest.raises(StaleUpdateError) as excinfo:
        await transition_status(
            session, admin(), 101, S.UNDER_REVIEW, expected_updated_at=stale
        )

    assert excinfo.value.current == datetime(2026, 1, 15, tzinfo=UTC)
    assert app.status == S.PENDING
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_matching_precondition_proceeds():
    app = make_app_alice_pending()
    session = make_mock_session(single=app)

    result = await transition_status(
        session,
        admin(),
        101,
        S.UNDER_REVIEW,
        expected_updated_at=datetime(2026, 1, 15, tzinfo=UTC),
    )

    assert result.status == S.UNDER_REVIEW


@pytest.mark.asyncio
async def test_out_of_scope_returns_none():
    session = make_mock_session(single=None)

    assert await transition_status(session, reviewer_rita(), 103, S.APPROVED) is None
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_naive_precondition_is_read_as_utc():
    app = make_app_alice_pending()
    session = make_mock_session(single=app)

    result = await transition_status(
        session, admin(), 101, S.UNDER_REVIEW, expected_updated_at=datetime(2026, 1, 15)
    )

    assert result.status == S.UNDER_REVIEW


@pytest.mark.asyncio
async def test_write_is_conditional_on_precondition():
    app = make_app_alice_pending()
    session = make_mock_session(single=app)
    expected = datetime(2026, 1, 15, tzinfo=UTC)

    await transition_status(session, admin(), 101, S.UNDER_REVIEW, expected_updated_at=expected)

    [stmt] = [c.args[0] for c in session.execute.call_args_list if c.args[0].is_dml]
    compiled = stmt.compile()
    assert "applications.updated_at = " in str(compiled)
    assert expected in compiled.params.values()


@pytest.mark.asyncio
async def test_concurrent_change_between_read_and_write_is_stale():
    """Both callers pass the read-time check; only one UPDATE matches the row."""
    app = make_app_alice_pending()
    moved_on = make_app_alice_pending()
    moved_on.updated_at = datetime(2026, 1, 16, tzinfo=UTC)
    session = make_sequenced_session(
        make_result(single=app),
        make_result(count=0),
        make_result(single=moved_on),
    )

    with pytest.raises(StaleUpdateError) as excinfo:
        await transition_status(
            session,
            admin(),
            101,
            S.UNDER_REVIEW,
            expected_updated_at=datetime(2026, 1, 15, tzinfo=UTC),
        )

    assert excinfo.value.current == datetime(2026, 1, 16, tzinfo=UTC)
    assert app.status == S.PENDING
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
    session.add.assert_not_called()
