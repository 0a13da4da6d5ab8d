"""Notification Router — each listener sends exactly one notification to the right party."""

from datetime import datetime, timezone

import pytest

from custody.core.domain_types import (
    InitiationReason,
    NotificationIntent,
    ProcessOutcome,
)
from custody.core.errors import NotificationDeliveryError, ResourceNotFoundError
from custody.core.events import SubscriptionInitiated, SubscriptionProcessed
from custody.core.subscription import open_subscription
from custody.services.notification_router import InformConcerned, ProcessSubscription

from tests.fakes import HEAD, U1_EMAIL

SUB = open_subscription(
    "code-1", "u1", 123, "Widget", datetime(2026, 3, 1, tzinfo=timezone.utc),
)


async def test_process_subscription_notifies_head(directory, sender):
    listener = ProcessSubscription(directory, sender)
    await listener(SubscriptionInitiated(SUB))

    assert len(sender.sent) == 1
    recipient, intent, payload = sender.sent[0]
    assert recipient == HEAD
    assert intent == NotificationIntent.SUBSCRIPTION_PREPARED
    assert payload["reason"] == InitiationReason.REQUESTED.value


async def test_process_subscription_passes_return_reason(directory, sender):
    listener = ProcessSubscription(directory, sender)
    await listener(SubscriptionInitiated(SUB, InitiationReason.RETURNED))

    assert sender.sent[0][2]["subject"].startswith("Item returned")


@pytest.mark.parametrize("outcome", list(ProcessOutcome))
async def test_inform_concerned_notifies_requester(directory, sender, outcome):
    listener = InformConcerned(directory, sender)
    await listener(SubscriptionProcessed(SUB, outcome))

    assert [s[0] for s in sender.sent] == [U1_EMAIL]
    assert sender.sent[0][1] == NotificationIntent.SUBSCRIPTION_COMPLETED
    assert sender.sent[0][2]["outcome"] == outcome.value


async def test_unknown_requester_propagates(directory, sender):
    listener = InformConcerned(directory, sender)
    stranger = open_subscription(
        "code-2", "stranger", 1, "Lamp", datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    with pytest.raises(ResourceNotFoundError):
        await listener(SubscriptionProcessed(stranger, ProcessOutcome.APPROVED))


async def test_delivery_failure_propagates_to_bus(directory, sender):
    sender.failing_recipients.add(HEAD)
    listener = ProcessSubscription(directory, sender)
    with pytest.raises(NotificationDeliveryError):
        await listener(SubscriptionInitiated(SUB))
