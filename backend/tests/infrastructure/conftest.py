"""Infrastructure fixtures — a seeded department with two members and one orphan user."""

import pytest

from custody.models.department import Department
from custody.models.user import User

from tests.fakes import HEAD, U1_EMAIL


@pytest.fixture
async def seeded(test_session_factory):
    async with test_session_factory() as session:
        dept = Department(name="Facilities", head=HEAD)
        session.add(dept)
        await session.flush()
        session.add_all([
            User(id="u1", name="Ana", email=U1_EMAIL, department_id=dept.id),
            User(id="u2", name="Bo", email="u2@example.test", department_id=dept.id),
            User(id="u3", name="Cy", email="u3@example.test", department_id=None),
        ])
        await session.commit()
