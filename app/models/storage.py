from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from app.db.base_class import Base

class StorageSlot(Base):
    """A named slot holding one serialized snapshot of a collection."""
    __tablename__ = "storage_slots"

    key = Column(String, primary_key=True, index=True)
    # Whole collection as a JSON document, replaced on every write
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
