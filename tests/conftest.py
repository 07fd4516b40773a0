"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database (aiosqlite), so workflow
code runs against real SQL without a PostgreSQL server.
"""

import pytest
import pytest_asyncio
from datetime import datetime

from src.catalog.generator import CatalogGenerator
from src.database.connection import Database
from src.database.repositories.tasks import TaskRepository

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

ORG = "org_test"
# A Monday: week 1 of every phase generated in tests starts here
NOW = datetime(2026, 3, 2, 9, 0)


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database with all tables created."""
    db = Database("sqlite+aiosqlite:///:memory:")
    assert await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session(database):
    """Session on the test database. Tests flush; nothing is committed."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def roster():
    """Two co-leaders of one area and a member who leads their own area alone."""
    return [
        {"username": "angel", "user_id": "usr_angel", "area": "redes"},
        {"username": "carla", "user_id": "usr_carla", "area": "redes"},
        {"username": "miguel", "user_id": "usr_miguel", "area": "operaciones"},
    ]


@pytest_asyncio.fixture
async def phase_one(session, roster):
    """Phase 1 generated for the test roster at NOW, four weeks long."""
    return await CatalogGenerator(session).generate(
        ORG, 1, roster=roster, total_weeks=4, generated_by="usr_zarko", now=NOW
    )


@pytest.fixture
def find_task(session):
    """Look up a user's task in the active catalog by title."""
    async def _find(owner_user_id: str, title: str, phase: int = 1):
        for task in await TaskRepository(session).list_for_owner(ORG, owner_user_id, phase):
            if task.title == title:
                return task
        raise AssertionError(f"{owner_user_id} has no task titled {title!r}")
    return _find


@pytest.fixture
def leader_feedback():
    """Complete, valid leader feedback."""
    return {
        "whatWentWell": "Buen ritmo de publicación y copys claros",
        "whatToImprove": "Medir el alcance de cada story",
        "additionalComments": "Sigue así",
        "rating": 4,
    }


@pytest.fixture
def impact_measurement():
    """Impact measurement that passes the completion gate."""
    return {
        "reflection_answers": {
            "main_result": "Campaña activa con 40 leads en la primera semana",
            "resources_used": "300€ de presupuesto y 6 horas de setup",
        },
        "key_metrics": [
            {"kind": "leads", "name": "Leads", "value": "40"},
            {"name": "Clicks", "value": "1200"},
        ],
        "impact_rating": "met",
    }
