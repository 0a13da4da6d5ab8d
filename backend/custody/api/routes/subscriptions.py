"""Subscription Routes — HTTP surface of the custody lifecycle.

Invariants:
    - Routes hold no lifecycle rules: every action is one SubscriptionService call
    - Precondition failures surface through the global CustodyError handler
      (duplicate → 409, already approved → 403, not approved / already returned → 409)
    - approve/reject are GET so the department head can act from an emailed link

Design Decisions:
    - Approver defaults to the requester's department head: whoever follows the
      link is acting on the head's behalf
    - Return checks ownership against the current user
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from custody.api.dependencies import (
    get_container,
    get_current_user_id,
    get_subscription_service,
)
from custody.bootstrap import Container
from custody.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionList,
    SubscriptionResponse,
)
from custody.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


@router.post(
    "", response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_subscription(
    body: SubscriptionCreate,
    user_id: str = Depends(get_current_user_id),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Ask for custody of an item."""
    event = await service.request_subscription(user_id, body.item_id, body.item_name)
    return SubscriptionResponse.from_domain(event.subscription)


@router.get("", response_model=SubscriptionList)
async def list_subscriptions(
    user_id: str = Depends(get_current_user_id),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subs = await service.list_subscriptions(user_id)
    return SubscriptionList(
        subscriptions=[SubscriptionResponse.from_domain(s) for s in subs],
    )


@router.get("/{subscription_code}", response_model=SubscriptionResponse)
async def get_subscription(
    subscription_code: str,
    service: SubscriptionService = Depends(get_subscription_service),
):
    sub = await service.get_subscription(subscription_code)
    return SubscriptionResponse.from_domain(sub)


@router.get("/{subscription_code}/approve", response_model=SubscriptionResponse)
async def approve_subscription(
    subscription_code: str,
    approved_by: str | None = Query(None, min_length=1, max_length=191),
    container: Container = Depends(get_container),
):
    """Approve a pending request. Approver defaults to the requester's department head."""
    approver = approved_by
    if approver is None:
        sub = await container.service.get_subscription(subscription_code)
        approver = await container.departments.head_of(sub.user_id)
    event = await container.service.approve_subscription(subscription_code, approver)
    return SubscriptionResponse.from_domain(event.subscription)


@router.get("/{subscription_code}/reject", response_model=SubscriptionResponse)
async def reject_subscription(
    subscription_code: str,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Reject a pending request. The record is deleted; the response is its last state."""
    event = await service.reject_subscription(subscription_code)
    return SubscriptionResponse.from_domain(event.subscription)


@router.post("/{subscription_code}/return", response_model=SubscriptionResponse)
async def return_item(
    subscription_code: str,
    user_id: str = Depends(get_current_user_id),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Hand the item back. Only the requester may do this."""
    event = await service.return_item(subscription_code, user_id=user_id)
    return SubscriptionResponse.from_domain(event.subscription)
