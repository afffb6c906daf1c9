# Record store and catalog access

from .record_store import (
    RecordStore,
    RecordStoreError,
    RecordNotFound,
    ConditionFailed,
    Filter,
)
from .memory import InMemoryRecordStore
from .supabase import SupabaseRecordStore
from .catalog import CatalogReader

__all__ = [
    "RecordStore",
    "RecordStoreError",
    "RecordNotFound",
    "ConditionFailed",
    "Filter",
    "InMemoryRecordStore",
    "SupabaseRecordStore",
    "CatalogReader",
]
