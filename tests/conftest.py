"""Shared pytest fixtures for timebill tests."""

import logging
import os
import tempfile
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from timebill.database.factories import create_sqlite_database
from timebill.domain.session import DashboardSession


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_timebill_logging():
    """Drop handlers the CLI installs so they never outlive the runner's streams."""
    yield
    logger = logging.getLogger("timebill")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock fixed at Monday 2024-03-04 09:00."""
    return FakeClock(datetime(2024, 3, 4, 9, 0, 0))


@pytest.fixture
def session(temp_db, clock):
    """Open a DashboardSession on the temporary database."""
    session = DashboardSession(temp_db, clock=clock).open()
    yield session
    session.close()


@pytest.fixture
def time_entries(session):
    return session.time_entries


@pytest.fixture
def invoices(session):
    return session.invoices


@pytest.fixture
def composer(session):
    return session.composer


@pytest.fixture
def timer(session):
    return session.timer


@pytest.fixture
def sample_categories(session):
    """Create the default categories and return them by ID."""
    from timebill.cli.commands.init_data import INITIAL_CATEGORIES

    return {
        category_id: session.categories.add_category(name=name, color=color, category_id=category_id)
        for category_id, name, color in INITIAL_CATEGORIES
    }


@pytest.fixture
def sample_client(session):
    """Create a sample client for testing."""
    return session.clients.create_client(
        name="Acme Corporation",
        contact_name="John Smith",
        email="john@acme.com",
        phone="(555) 123-4567",
    )


@pytest.fixture
def other_client(session):
    """Create a second client for testing."""
    return session.clients.create_client(
        name="Globex Industries",
        contact_name="Jane Brown",
        email="jane@globex.com",
        phone="(555) 987-6543",
    )


@pytest.fixture
def make_entry(time_entries, sample_client):
    """Factory adding a billable entry for the sample client.

    Defaults to one hour at 100/h on 2024-03-01.
    """

    def _make_entry(**overrides):
        fields = {
            "client_id": sample_client.id,
            "description": "Development",
            "date": date(2024, 3, 1),
            "start_time": "09:00",
            "end_time": "10:00",
            "rate": Decimal("100"),
        }
        fields.update(overrides)
        return time_entries.add(**fields)

    return _make_entry


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
