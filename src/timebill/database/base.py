"""Abstract record store interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

Record = dict[str, Any]

# Fields a caller may set on each record type. Anything else (IDs, audit
# columns) is dropped before it reaches the database.
CLIENT_FIELDS = ("name", "contact_name", "email", "phone", "status", "address")
CATEGORY_FIELDS = ("id", "name", "color")
TIME_ENTRY_FIELDS = (
    "client_id",
    "project_id",
    "description",
    "category_id",
    "date",
    "start_time",
    "end_time",
    "duration",
    "rate",
    "billable",
    "invoiced",
    "invoice_id",
)
INVOICE_FIELDS = (
    "invoice_number",
    "client_id",
    "issue_date",
    "due_date",
    "status",
    "subtotal",
    "tax_rate",
    "tax",
    "total",
    "notes",
    "payment_terms",
    "time_entry_ids",
)
INVOICE_ITEM_FIELDS = (
    "invoice_id",
    "description",
    "quantity",
    "rate",
    "amount",
    "time_entry_ids",
)
ACTIVE_TIMER_FIELDS = ("client_id", "project_id", "description", "category_id", "started_at")


class RecordStore(ABC):
    """Persistence collaborator for one record type."""

    updateable_fields: tuple[str, ...] = ()

    def filter_updateable_fields(self, data: Record) -> Record:
        """Return only the keys of data that callers may set."""
        return {key: value for key, value in data.items() if key in self.updateable_fields}

    @abstractmethod
    def fetch_all(self, filters: Optional[Record] = None) -> list[Record]:
        """Fetch records matching all filters exactly.

        Raises:
            RemoteError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def create(self, record: Record) -> Record:
        """Create a record. Returns the stored record including its ID.

        Raises:
            ValidationError: If the record violates the schema
            RemoteError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def update(self, record_id: Any, fields: Record) -> Record:
        """Update a record. Returns the stored record.

        Raises:
            NotFoundError: If no record has this ID
            RemoteError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def delete(self, record_id: Any) -> bool:
        """Delete a record. Returns False if no record has this ID.

        Raises:
            RemoteError: If the store cannot be reached
        """
        pass


class Database(ABC):
    """Abstract database interface grouping one record store per entity."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @property
    @abstractmethod
    def clients(self) -> RecordStore:
        pass

    @property
    @abstractmethod
    def categories(self) -> RecordStore:
        pass

    @property
    @abstractmethod
    def time_entries(self) -> RecordStore:
        pass

    @property
    @abstractmethod
    def invoices(self) -> RecordStore:
        pass

    @property
    @abstractmethod
    def invoice_items(self) -> RecordStore:
        pass

    @property
    @abstractmethod
    def active_timers(self) -> RecordStore:
        pass
