"""
Record store interface.

A record store is a durable keyed collection of flat records (``dict``
mappings whose keys are the columns of a :class:`RecordSchema`), one
collection per entity kind. Two implementations exist:

- :class:`~recruitcord.storage.json_store.JsonRecordStore`: one JSON array
  per kind, rewritten wholesale on each mutation
- :class:`~recruitcord.storage.sqlite_store.SqliteRecordStore`: one table per
  kind, auto-created on first use

Contract shared by both:
- ``get_by_id`` / ``update_by_id`` on an unknown id return ``None``.
- ``update_by_id`` with ``expected`` only writes when every expected field
  still holds; otherwise it returns ``None`` without writing.
- Read failures are logged and degrade to ``None`` / empty results.
- Write failures raise :class:`StorageUnavailableError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from recruitcord.datatypes.errors import UnsupportedOperationError
from recruitcord.storage.id_generator import IdGenerator, id_generator
from recruitcord.storage.schema import SCHEMAS, RecordSchema

Record = Dict[str, Any]
# (field, descending)
OrderBy = Sequence[Tuple[str, bool]]

# How many fresh ids a store tries before giving up on a colliding insert
MAX_ID_ATTEMPTS = 5


class RecordStore(ABC):
    """Abstract durable keyed record store."""

    backend_name: str = "abstract"
    # Multi-record writes in one atomic step (insert_many / update_many)
    supports_batch_writes: bool = False

    def __init__(
        self,
        schemas: Mapping[str, RecordSchema] | None = None,
        ids: IdGenerator | None = None,
    ) -> None:
        self.schemas: Dict[str, RecordSchema] = dict(schemas or SCHEMAS)
        self.ids = ids or id_generator

    def schema(self, kind: str) -> RecordSchema:
        try:
            return self.schemas[kind]
        except KeyError:
            raise KeyError(f"Unknown record kind {kind!r}") from None

    def generate_id(self) -> str:
        return self.ids.generate()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Prepare the backend. Safe to call more than once."""

    async def close(self) -> None:
        """Release backend resources."""

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    @abstractmethod
    async def insert(self, kind: str, record: Mapping[str, Any]) -> Record:
        """Store a new record and return it as persisted.

        A missing or empty ``id`` is generated. A caller-supplied id that
        already exists raises :class:`DuplicateRecordError`.
        """

    @abstractmethod
    async def get_by_id(self, kind: str, record_id: str) -> Optional[Record]:
        """Return the record with ``record_id`` or ``None``."""

    @abstractmethod
    async def update_by_id(
        self,
        kind: str,
        record_id: str,
        patch: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Record]:
        """Apply ``patch`` and return the updated record.

        Returns ``None`` when no record has ``record_id`` or when any
        ``expected`` field differs from its current value.
        """

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @abstractmethod
    async def query_filtered(
        self,
        kind: str,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy = (),
        limit: int | None = None,
    ) -> List[Record]:
        """Return records whose fields equal every value in ``filters``."""

    @abstractmethod
    async def count_grouped(
        self,
        kind: str,
        group_by: str,
        filters: Mapping[str, Any] | None = None,
    ) -> Dict[str, int]:
        """Count matching records per distinct value of ``group_by``."""

    # ------------------------------------------------------------------
    # Batch writes
    # ------------------------------------------------------------------

    async def insert_many(self, kind: str, records: Iterable[Mapping[str, Any]]) -> List[Record]:
        """Insert several records atomically."""
        raise UnsupportedOperationError(
            f"The {self.backend_name} backend does not support batch inserts."
        )

    async def update_many(
        self,
        kind: str,
        record_ids: Sequence[str],
        patch: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> int:
        """Patch several records atomically and return how many changed."""
        raise UnsupportedOperationError(
            f"The {self.backend_name} backend does not support batch updates."
        )

    # ------------------------------------------------------------------
    # Helpers for implementations
    # ------------------------------------------------------------------

    def _prepare_insert(self, kind: str, record: Mapping[str, Any]) -> Tuple[Record, bool]:
        """Complete ``record`` and assign an id; returns (record, id_was_generated)."""
        full = self.schema(kind).complete(record)
        generated = not full.get("id")
        if generated:
            full["id"] = self.generate_id()
        else:
            full["id"] = str(full["id"])
            self.ids.reserve(full["id"])
        return full, generated

    def _check_patch(self, kind: str, patch: Mapping[str, Any], expected: Mapping[str, Any] | None) -> None:
        schema = self.schema(kind)
        if "id" in patch:
            raise KeyError("Record ids are immutable")
        schema.check_fields(patch.keys())
        if expected:
            schema.check_fields(expected.keys())
