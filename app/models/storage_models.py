"""PowerUp — Document Storage Table."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class StoredDocument(SQLModel, table=True):
    """One document of a collection.

    The payload is the document body as JSON; timestamps inside it are tagged
    so they decode back into StorageTimestamp values.
    """

    __tablename__ = "documents"

    collection: str = Field(primary_key=True, description="meets | registrations | directors")
    id: str = Field(primary_key=True, description="Document ID")
    payload_json: str = Field(description="Full document body as JSON")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
