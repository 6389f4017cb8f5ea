from app.models.storage import StorageSlot  # noqa: F401

__all__ = ["StorageSlot"]
