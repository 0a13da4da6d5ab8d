"""SQL Directory — resolves department heads and requester contacts from the users table.

Invariants:
    - head_of(user_id) returns the head of the user's department
    - contact_of(user_id) returns the user's email
    - Unknown user, or a user without a department, raises ResourceNotFoundError
"""

from sqlalchemy import select

from custody.core.errors import ErrorContext, ResourceNotFoundError
from custody.infrastructure.database import DatabaseSessionManager
from custody.models.user import User


class SqlDirectory:
    """DepartmentDirectory and UserDirectory over the ORM."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def head_of(self, user_id: str) -> str:
        user = await self._user(user_id)
        if user.department is None:
            raise ResourceNotFoundError(
                "Department", f"of user {user_id}", ErrorContext(user_id=user_id),
            )
        return user.department.head

    async def contact_of(self, user_id: str) -> str:
        user = await self._user(user_id)
        return user.email

    async def _user(self, user_id: str) -> User:
        async with self._db.session() as session:
            result = await session.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        if user is None:
            raise ResourceNotFoundError("User", user_id, ErrorContext(user_id=user_id))
        return user
