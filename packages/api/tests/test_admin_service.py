# This project was developed with assistance from AI tools.
"""Tests for admin user management and review comments."""

import pytest
from db import ActivityLog, ApplicationComment, Notification
from db.enums import NotificationType, UserRole

from app_tracker.services.admin import SelfDeletionError, delete_user, update_user
from app_tracker.services.comment import EmptyCommentError, add_comment

from .functional.data_factory import (
    bob_profile,
    make_app_alice_pending,
    make_comment,
)
from .functional.mock_db import make_mock_session, make_result, make_sequenced_session
from .functional.personas import (
    ADMIN_USER_ID,
    ALICE_USER_ID,
    BOB_USER_ID,
    admin,
    applicant_alice,
    reviewer_rita,
)


def _added(session, cls):
    return [c.args[0] for c in session.add.call_args_list if isinstance(c.args[0], cls)]


# ---------------------------------------------------------------------------
# update_user / delete_user
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_user_records_changed_fields_only():
    profile = bob_profile()
    session = make_mock_session(single=profile)

    result = await update_user(
        session, admin(), BOB_USER_ID, full_name="Bob Smith", role=UserRole.REVIEWER
    )

    assert result.role == UserRole.REVIEWER
    [activity] = _added(session, ActivityLog)
    assert activity.details == {"role": "reviewer"}
    assert activity.resource_id == BOB_USER_ID
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_unknown_user_returns_none():
    session = make_mock_session(single=None)
    assert await update_user(session, admin(), "ghost", full_name="X") is None


@pytest.mark.asyncio
async def test_admin_cannot_delete_self():
    session = make_mock_session()

    with pytest.raises(SelfDeletionError):
        await delete_user(session, admin(), ADMIN_USER_ID)

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_user_cleans_up_their_files(mock_storage):
    paths = [f"{BOB_USER_ID}/1-a.pdf"]
    session = make_sequenced_session(
        make_result(single=bob_profile()),
        make_result(items=paths),
        make_result(),
    )

    assert await delete_user(session, admin(), BOB_USER_ID) is True

    [activity] = _added(session, ActivityLog)
    assert activity.details == {"email": f"{BOB_USER_ID}@example.com"}
    session.commit.assert_awaited_once()
    mock_storage.delete_files.assert_awaited_once_with(paths)


@pytest.mark.asyncio
async def test_delete_unknown_user_returns_false(mock_storage):
    session = make_mock_session(single=None)

    assert await delete_user(session, admin(), "ghost") is False
    session.commit.assert_not_awaited()


# ---------------------------------------------------------------------------
# add_comment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_blank_comment_rejected():
    session = make_mock_session()

    with pytest.raises(EmptyCommentError):
        await add_comment(session, reviewer_rita(), 101, "   \n ")

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_reviewer_comment_notifies_applicant(hub):
    sub = hub.subscribe(ALICE_USER_ID)
    saved = make_comment(comment="Needs a budget")
    session = make_sequenced_session(
        make_result(single=make_app_alice_pending()), make_result(single=saved)
    )

    result = await add_comment(session, reviewer_rita(), 101, "  Needs a budget  ")

    assert result is saved
    [comment] = _added(session, ApplicationComment)
    assert comment.comment == "Needs a budget"
    [activity] = _added(session, ActivityLog)
    assert activity.details == {"comment_preview": "Needs a budget"}
    [notification] = _added(session, Notification)
    assert notification.user_id == ALICE_USER_ID
    assert notification.type == NotificationType.COMMENT
    assert sub.queue.qsize() == 1


@pytest.mark.asyncio
async def test_long_comment_preview_truncated():
    text = "x" * 250
    session = make_sequenced_session(
        make_result(single=make_app_alice_pending()), make_result(single=make_comment())
    )

    await add_comment(session, admin(), 101, text)

    [activity] = _added(session, ActivityLog)
    assert activity.details["comment_preview"] == "x" * 100


@pytest.mark.asyncio
async def test_applicant_commenting_on_own_application_is_not_notified():
    session = make_sequenced_session(
        make_result(single=make_app_alice_pending()), make_result(single=make_comment())
    )

    await add_comment(session, applicant_alice(), 101, "Added the file")

    assert _added(session, Notification) == []


@pytest.mark.asyncio
async def test_comment_out_of_scope_returns_none():
    session = make_mock_session(single=None)

    assert await add_comment(session, reviewer_rita(), 103, "Hello") is None
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_user_survives_unreachable_storage(unreachable_storage):
    session = make_sequenced_session(
        make_result(single=bob_profile()),
        make_result(items=[f"{BOB_USER_ID}/1-a.pdf"]),
        make_result(),
    )

    assert await delete_user(session, admin(), BOB_USER_ID) is True
    session.commit.assert_awaited_once()
