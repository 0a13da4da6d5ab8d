"""Notification Payloads — pure builders for the data handed to the sender.

Invariants:
    - All functions are pure (no IO, no async, no DB)
    - Payload always embeds the subscription snapshot under "subscription"
    - Completed payload carries the outcome; subject differs per outcome

Design Decisions:
    - Subject lines live here, not in the sender: the sender only transports
"""

from custody.core.domain_types import InitiationReason, ProcessOutcome
from custody.core.subscription import Subscription

_PREPARED_SUBJECTS = {
    InitiationReason.REQUESTED: "Custody requested: {item_name}",
    InitiationReason.RETURNED: "Item returned: {item_name}",
}

_COMPLETED_SUBJECTS = {
    ProcessOutcome.APPROVED: "Your request for {item_name} was approved",
    ProcessOutcome.REJECTED: "Your request for {item_name} was rejected",
}


def format_prepared_payload(
    subscription: Subscription, reason: InitiationReason,
) -> dict:
    """Payload for the department head."""
    return {
        "subject": _PREPARED_SUBJECTS[reason].format(item_name=subscription.item_name),
        "reason": reason.value,
        "subscription": subscription.to_dict(),
    }


def format_completed_payload(
    subscription: Subscription, outcome: ProcessOutcome,
) -> dict:
    """Payload for the requester."""
    return {
        "subject": _COMPLETED_SUBJECTS[outcome].format(item_name=subscription.item_name),
        "outcome": outcome.value,
        "subscription": subscription.to_dict(),
    }
