"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection (bootstrap.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the transition functions in core/subscription.py never are
    - Writes are conditional on the state the caller last read: a repository shared
      by several processes reports a lost race instead of overwriting the winner
"""

from typing import Any, Protocol

from custody.core.domain_types import NotificationIntent, SubscriptionState
from custody.core.subscription import Subscription


class SubscriptionRepository(Protocol):
    """Contract for subscription persistence — implemented by shell."""
    async def get(self, subscription_code: str) -> Subscription | None: ...
    async def add(self, subscription: Subscription) -> None:
        """Insert. Raises DuplicateActiveSubscriptionError if the pair is already active."""
    async def save_if(
        self, subscription: Subscription, expected: SubscriptionState,
    ) -> bool:
        """Overwrite only while the stored status is still `expected`."""
    async def delete_if(
        self, subscription_code: str, expected: SubscriptionState,
    ) -> bool:
        """Delete only while the stored status is still `expected`."""
    async def has_active(self, user_id: str, item_id: int) -> bool: ...
    async def list_by_user(self, user_id: str) -> list[Subscription]: ...


class DepartmentDirectory(Protocol):
    """Resolves the approving authority for a user."""
    async def head_of(self, user_id: str) -> str: ...


class UserDirectory(Protocol):
    """Resolves a user's contact address."""
    async def contact_of(self, user_id: str) -> str: ...


class NotificationSender(Protocol):
    """Fire-and-forget delivery of a notification intent."""
    async def send(
        self, recipient: str, intent: NotificationIntent, payload: dict[str, Any],
    ) -> None: ...
