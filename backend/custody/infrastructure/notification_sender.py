"""Notification Senders — transport side of the NotificationSender protocol.

Invariants:
    - send() never retries; failures propagate to the event bus, which logs them
    - A blank recipient (department without a head contact, user without email)
      raises NotificationDeliveryError
    - Senders do not render templates; the payload already carries the subject

Design Decisions:
    - Default transport is the structured log: mail delivery is an external concern
      plugged in through bootstrap.build_container(sender=...)
"""

import logging
from typing import Any

from custody.core.domain_types import NotificationIntent
from custody.core.errors import NotificationDeliveryError

logger = logging.getLogger(__name__)


class LoggingNotificationSender:
    """Records each notification intent in the structured log."""

    async def send(
        self, recipient: str, intent: NotificationIntent, payload: dict[str, Any],
    ) -> None:
        if not recipient or not recipient.strip():
            raise NotificationDeliveryError(recipient, "no address to deliver to")
        subscription = payload.get("subscription", {})
        logger.info(
            payload.get("subject", intent.value),
            extra={
                "recipient": recipient,
                "intent": intent.value,
                "subscription_code": subscription.get("subscription_code"),
                "user_id": subscription.get("user_id"),
            },
        )
