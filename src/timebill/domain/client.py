"""Client domain service."""

import logging
import re
from dataclasses import replace
from typing import Optional
from timebill.database.base import Database
from timebill.database.mappers import client_to_domain
from timebill.domain.entities import Client
from timebill.domain.errors import ConflictError, NotFoundError, ValidationError, client_not_found
from timebill.domain.loading import LoadingState

logger = logging.getLogger(__name__)

CLIENT_STATUSES = ("active", "inactive", "pending")

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def _check_status(status: str) -> None:
    if status not in CLIENT_STATUSES:
        valid = ", ".join(CLIENT_STATUSES)
        raise ValidationError(f"Unknown client status '{status}'. Valid statuses: {valid}")


class ClientService:
    """Directory of clients that time entries and invoices refer to by ID."""

    def __init__(self, db: Database, loading: Optional[LoadingState] = None):
        """Initialize client service.

        Args:
            db: Database instance
            loading: Shared loading state; a private one is created if omitted
        """
        self.db = db
        self.loading = loading or LoadingState()
        self._clients: list[Client] = []

    def load(self) -> None:
        """Load clients from the record store."""
        with self.loading.track("client.load"):
            records = self.db.clients.fetch_all()
        self._clients = [client_to_domain(r) for r in records]

    def create_client(
        self,
        name: str,
        contact_name: str,
        email: str,
        phone: str,
        status: str = "active",
        address: Optional[str] = None,
    ) -> Client:
        """Create a client.

        Name, contact name, email and phone are all required.

        Raises:
            ValidationError: If a required field is empty, the email is
                malformed or status is unknown
            ConflictError: If a client with this name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Company name is required")
        contact_name = (contact_name or "").strip()
        if not contact_name:
            raise ValidationError("Contact name is required")
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required")
        if not _EMAIL_RE.search(email):
            raise ValidationError(f"Email '{email}' is invalid")
        phone = (phone or "").strip()
        if not phone:
            raise ValidationError("Phone number is required")
        _check_status(status)
        if any(c.name == name for c in self._clients):
            raise ConflictError(f"Client with name '{name}' already exists")

        with self.loading.track("client.create"):
            record = self.db.clients.create(
                {
                    "name": name,
                    "contact_name": contact_name,
                    "email": email,
                    "phone": phone,
                    "status": status,
                    "address": address,
                }
            )
        client = client_to_domain(record)
        self._clients.append(client)
        logger.info(f"Created client '{client.name}' (ID {client.id})")
        return client

    def update_client_status(self, client_id: int, status: str) -> Client:
        """Set a client's status.

        Raises:
            NotFoundError: If client is not found
            ValidationError: If status is unknown
        """
        client = self.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        _check_status(status)

        with self.loading.track("client.update"):
            self.db.clients.update(client_id, {"status": status})
        updated = replace(client, status=status)
        self._clients[self._clients.index(client)] = updated
        logger.info(f"Updated {client.name}'s status to {status}")
        return updated

    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID, or None if not found."""
        for client in self._clients:
            if client.id == client_id:
                return client
        return None

    def list_clients(self, status: Optional[str] = None) -> list[Client]:
        """List clients ordered by name, optionally filtered by status."""
        clients = [c for c in self._clients if status is None or c.status == status]
        return sorted(clients, key=lambda c: c.name)

    def resolve_client(self, client: str | int) -> int:
        """Resolve a client name or ID to the client ID.

        Time entries always store the ID; names are accepted only here, at the
        edge, so joins against the directory never depend on display names.

        Raises:
            NotFoundError: If client is not found
        """
        if isinstance(client, int):
            if self.get_client(client) is None:
                raise NotFoundError(client_not_found(client))
            return client

        try:
            client_id = int(client)
        except (ValueError, TypeError):
            client_id = None

        if client_id is not None:
            if self.get_client(client_id) is None:
                raise NotFoundError(client_not_found(client_id))
            return client_id

        for c in self._clients:
            if c.name == client:
                return c.id
        # Fall back to a case-insensitive match
        for c in self._clients:
            if c.name.lower() == str(client).strip().lower():
                return c.id

        raise NotFoundError(client_not_found(client))
