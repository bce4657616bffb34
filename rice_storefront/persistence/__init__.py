"""Persistence — the hosted backend's document API and an in-memory stand-in."""

from rice_storefront.persistence.document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    DocumentNotFound,
)

__all__ = ["DocumentStore", "InMemoryDocumentStore", "DocumentNotFound"]
