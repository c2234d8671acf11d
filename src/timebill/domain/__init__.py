"""Domain layer for timebill application.

Services are imported from their modules (e.g. ``timebill.domain.invoice``);
this package does not re-export them so the database layer can import
``timebill.domain.entities`` without a circular import.
"""
