"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from custody.models.department import Department  # noqa: F401
from custody.models.user import User  # noqa: F401
from custody.models.subscription import SubscriptionRow  # noqa: F401
