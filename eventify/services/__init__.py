"""Service layer: slot accounting, documents, reminders and derived views."""

from .storage import DocumentStorage, get_document_storage

__all__ = [
    "DocumentStorage",
    "get_document_storage",
]
