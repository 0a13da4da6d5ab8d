"""Subscription Lifecycle — tests for pure transitions and state validation.

Tests cover:
    - open_subscription builds a Requested value with only requested_at set
    - approve sets approved_at and approved_by together, once
    - ensure_rejectable refuses anything past Requested
    - mark_returned requires approval and happens once
    - Illegal field combinations cannot be constructed
"""

from datetime import datetime, timedelta, timezone

import pytest

from custody.core.domain_types import SubscriptionState
from custody.core.errors import (
    AlreadyApprovedError,
    AlreadyReturnedError,
    InvalidSubscriptionError,
    NotApprovedError,
)
from custody.core.subscription import (
    Subscription,
    approve,
    ensure_rejectable,
    mark_returned,
    open_subscription,
)

T0 = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(days=3)


def _requested() -> Subscription:
    return open_subscription("code-1", "u1", 123, "Widget", T0)


# ─── open_subscription ───────────────────────────────────────────

def test_open_subscription_is_requested():
    sub = _requested()
    assert sub.state == SubscriptionState.REQUESTED
    assert sub.requested_at == T0
    assert sub.approved_at is None
    assert sub.approved_by is None
    assert sub.returned_at is None
    assert sub.is_active


def test_open_subscription_assigns_distinct_ids():
    a = _requested()
    b = _requested()
    assert a.subscription_id != b.subscription_id


# ─── approve ─────────────────────────────────────────────────────

def test_approve_sets_approval_fields_together():
    sub = approve(_requested(), "head-x", T1)
    assert sub.state == SubscriptionState.APPROVED
    assert sub.approved_at == T1
    assert sub.approved_by == "head-x"
    assert sub.returned_at is None


def test_approve_leaves_input_untouched():
    original = _requested()
    approve(original, "head-x", T1)
    assert original.state == SubscriptionState.REQUESTED
    assert original.approved_at is None


def test_approve_twice_raises_already_approved():
    sub = approve(_requested(), "head-x", T1)
    with pytest.raises(AlreadyApprovedError):
        approve(sub, "head-y", T2)


def test_approve_returned_raises_already_approved():
    sub = mark_returned(approve(_requested(), "head-x", T1), T2)
    with pytest.raises(AlreadyApprovedError):
        approve(sub, "head-x", T2)


def test_approve_requires_approver():
    with pytest.raises(InvalidSubscriptionError):
        approve(_requested(), "", T1)


# ─── ensure_rejectable ───────────────────────────────────────────

def test_requested_is_rejectable():
    ensure_rejectable(_requested())


def test_approved_is_not_rejectable():
    with pytest.raises(AlreadyApprovedError) as exc:
        ensure_rejectable(approve(_requested(), "head-x", T1))
    assert exc.value.http_status == 403


# ─── mark_returned ───────────────────────────────────────────────

def test_return_before_approval_raises_not_approved():
    with pytest.raises(NotApprovedError):
        mark_returned(_requested(), T1)


def test_return_sets_returned_at_and_deactivates():
    sub = mark_returned(approve(_requested(), "head-x", T1), T2)
    assert sub.state == SubscriptionState.RETURNED
    assert sub.returned_at == T2
    assert sub.approved_at == T1
    assert not sub.is_active


def test_return_twice_raises_already_returned():
    sub = mark_returned(approve(_requested(), "head-x", T1), T2)
    with pytest.raises(AlreadyReturnedError):
        mark_returned(sub, T2)


# ─── state validation ────────────────────────────────────────────

def test_approval_fields_must_be_set_together():
    with pytest.raises(InvalidSubscriptionError):
        Subscription("c", "u1", 1, "X", SubscriptionState.APPROVED,
                     requested_at=T0, approved_at=T1)


def test_requested_cannot_carry_return():
    with pytest.raises(InvalidSubscriptionError):
        Subscription("c", "u1", 1, "X", requested_at=T0, returned_at=T2)


def test_returned_requires_returned_at():
    with pytest.raises(InvalidSubscriptionError):
        Subscription("c", "u1", 1, "X", SubscriptionState.RETURNED,
                     requested_at=T0, approved_at=T1, approved_by="h")


def test_to_dict_serializes_state_and_timestamps():
    data = approve(_requested(), "head-x", T1).to_dict()
    assert data["state"] == "approved"
    assert data["approved_at"] == T1.isoformat()
    assert data["returned_at"] is None
    assert data["item_id"] == 123
