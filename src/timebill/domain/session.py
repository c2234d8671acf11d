"""Dashboard session: owns every store for one working session."""

import logging
from datetime import datetime
from typing import Callable

from timebill.database.base import Database
from timebill.domain.category import CategoryService
from timebill.domain.client import ClientService
from timebill.domain.invoice import InvoiceStore
from timebill.domain.invoice_composer import InvoiceComposer
from timebill.domain.loading import LoadingState
from timebill.domain.time_entry import TimeEntryStore
from timebill.domain.timer import Timer

logger = logging.getLogger(__name__)


class DashboardSession:
    """Constructs the stores at session start and tears them down at the end.

    Consumers receive the stores from the session instead of reaching for
    module-level state:

        with DashboardSession(db) as session:
            session.timer.start(client_id=1, description="Design review")
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.loading = LoadingState()
        self.clients = ClientService(db, loading=self.loading)
        self.categories = CategoryService(db, loading=self.loading)
        self.time_entries = TimeEntryStore(db, loading=self.loading)
        self.invoices = InvoiceStore(db, self.time_entries, loading=self.loading)
        self.composer = InvoiceComposer(
            self.time_entries, self.invoices, clients=self.clients, loading=self.loading
        )
        self.timer = Timer(self.time_entries, db=db, clock=clock)
        self._open = False

    def open(self) -> "DashboardSession":
        """Connect and load every store from the record stores."""
        self.db.connect()
        self.db.initialize_schema()
        self.clients.load()
        self.categories.load()
        self.time_entries.load()
        self.invoices.load()
        self.timer.restore()
        self._open = True
        logger.debug("Session opened")
        return self

    def close(self) -> None:
        """Disconnect from the database. A running timer stays persisted."""
        if self._open:
            self.db.disconnect()
            self._open = False
            logger.debug("Session closed")

    def __enter__(self) -> "DashboardSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
