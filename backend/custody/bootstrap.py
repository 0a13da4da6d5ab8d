"""Bootstrap — builds the process-wide object graph once at startup.

Invariants:
    - Exactly one EventBus per container; its listener registry is fixed here
    - Services receive collaborators through constructors, never via module globals

Design Decisions:
    - Container is a plain dataclass stored on app.state; tests build their own
      with fakes instead of patching imports
"""

from dataclasses import dataclass

from custody.core.events import SubscriptionInitiated, SubscriptionProcessed
from custody.core.repository_protocols import (
    DepartmentDirectory,
    NotificationSender,
    SubscriptionRepository,
    UserDirectory,
)
from custody.services.event_bus import EventBus
from custody.services.notification_router import InformConcerned, ProcessSubscription
from custody.services.subscription_ledger import SubscriptionLedger
from custody.services.subscription_service import SubscriptionService


@dataclass
class Container:
    repository: SubscriptionRepository
    bus: EventBus
    ledger: SubscriptionLedger
    service: SubscriptionService
    departments: DepartmentDirectory


def build_event_bus(
    departments: DepartmentDirectory,
    users: UserDirectory,
    sender: NotificationSender,
) -> EventBus:
    bus = EventBus()
    bus.subscribe(SubscriptionInitiated, ProcessSubscription(departments, sender))
    bus.subscribe(SubscriptionProcessed, InformConcerned(users, sender))
    return bus


def build_container(
    repository: SubscriptionRepository,
    departments: DepartmentDirectory,
    users: UserDirectory,
    sender: NotificationSender,
    **ledger_kwargs,
) -> Container:
    """Wire repository, directory, sender, bus, ledger and service together."""
    bus = build_event_bus(departments, users, sender)
    ledger = SubscriptionLedger(repository, **ledger_kwargs)
    return Container(
        repository=repository,
        bus=bus,
        ledger=ledger,
        service=SubscriptionService(ledger, bus),
        departments=departments,
    )
