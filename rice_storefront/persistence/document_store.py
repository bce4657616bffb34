"""
Document Store — the hosted backend's document API as seen by the services.
Products, customers, orders, order items, addresses and loyalty records all
live in the hosted backend; services only ever talk to this interface.
InMemoryDocumentStore backs tests and the development server.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any

logger = logging.getLogger(__name__)

# ── Collection ids ───────────────────────────────────────
PRODUCTS = "products"
CUSTOMERS = "customers"
ORDERS = "orders"
ORDER_ITEMS = "order_items"
ADDRESSES = "addresses"
LOYALTY_DISCOUNTS = "discount_management"


class DocumentNotFound(KeyError):
    """Raised when a document id does not exist in a collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id}")
        self.collection = collection
        self.doc_id = doc_id


def new_id() -> str:
    """Unique document id in the backend's 20-char style."""
    return uuid.uuid4().hex[:20]


class DocumentStore(ABC):
    """CRUD over named collections of JSON-like documents."""

    @abstractmethod
    def create(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> dict[str, Any]:
        ...

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def list(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        """Return documents whose fields equal every given filter value."""
        ...


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed store. Documents are copied on the way in and out so callers
    never share mutable state with the store.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def create(self, collection: str, data: dict[str, Any], doc_id: str | None = None) -> dict[str, Any]:
        doc_id = doc_id or data.get("id") or new_id()
        docs = self._collections.setdefault(collection, {})
        if doc_id in docs:
            raise ValueError(f"Document {collection}/{doc_id} already exists")
        doc = deepcopy(data)
        doc["id"] = doc_id
        docs[doc_id] = doc
        logger.debug(f"Created {collection}/{doc_id}")
        return deepcopy(doc)

    def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            raise DocumentNotFound(collection, doc_id)
        return deepcopy(doc)

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentNotFound(collection, doc_id)
        docs[doc_id].update(deepcopy(data))
        logger.debug(f"Updated {collection}/{doc_id}: {sorted(data)}")
        return deepcopy(docs[doc_id])

    def delete(self, collection: str, doc_id: str) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentNotFound(collection, doc_id)
        del docs[doc_id]
        logger.debug(f"Deleted {collection}/{doc_id}")

    def list(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        docs = self._collections.get(collection, {}).values()
        return [
            deepcopy(d) for d in docs
            if all(d.get(k) == v for k, v in filters.items())
        ]

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
