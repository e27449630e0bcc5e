"""Dependency injection provider for the record store service."""

from careconnect.services.record_store_service import RecordStoreService

_record_store_service: RecordStoreService | None = None


def get_record_store_service() -> RecordStoreService:
    """Get or create the RecordStoreService singleton."""
    global _record_store_service
    if _record_store_service is None:
        _record_store_service = RecordStoreService()
    return _record_store_service
