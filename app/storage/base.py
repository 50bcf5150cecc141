"""PowerUp — Abstract Document Store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

COLLECTION_MEETS = "meets"
COLLECTION_REGISTRATIONS = "registrations"
COLLECTION_DIRECTORS = "directors"

FILTER_OPS = ("==", "!=", "in", "<", "<=", ">", ">=")


class StorageError(Exception):
    """Raised when the document store fails."""

    def __init__(self, message: str, collection: str = "", doc_id: str = ""):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(message)


class DocumentNotFoundError(StorageError):
    """Raised when updating or deleting a document that does not exist."""


@dataclass(frozen=True)
class QueryFilter:
    """Field condition, e.g. QueryFilter("status", "==", "published")."""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str = "asc"  # "asc" | "desc"


class DocumentStore(ABC):
    """Minimal document-store contract the meet services depend on.

    Documents are plain dicts. Returned documents carry their ID under "id".
    """

    @abstractmethod
    def create(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a new document and return its generated ID."""
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Shallow-merge fields into an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist.
        """
        ...

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document, or None if not found."""
        ...

    @abstractmethod
    def list(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Query a collection.

        Args:
            filters: All must match.
            order_by: Documents lacking the ordering field are excluded.
            limit: Maximum number of documents returned.
            start_after: Document ID cursor; results begin after it.
        """
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document."""
        ...
