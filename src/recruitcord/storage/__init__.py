"""
Storage package for Recruitcord.

Public API:
    - RecordStore: abstract durable keyed record store
    - JsonRecordStore / SqliteRecordStore: the two backends
    - create_record_store: picks the backend once, from configuration
"""

from recruitcord.storage.record_store import RecordStore
from recruitcord.storage.json_store import JsonRecordStore
from recruitcord.storage.sqlite_store import SqliteRecordStore
from recruitcord.storage.factory import create_record_store

__all__ = [
    "RecordStore",
    "JsonRecordStore",
    "SqliteRecordStore",
    "create_record_store",
]
