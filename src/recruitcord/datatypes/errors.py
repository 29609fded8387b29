"""
Error taxonomy shared by the storage layer, the ledger and the pipeline.

"Not found" is deliberately absent: lookups and transitions on unknown ids
return ``None``. Everything here carries a short ``user_message`` that the
Discord layer can show as-is.
"""

from __future__ import annotations

from typing import Any


class RecruitcordError(Exception):
    """Base class for all expected failures surfaced to the Discord layer."""

    user_message: str = "Something went wrong while processing this request."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class StorageUnavailableError(RecruitcordError):
    """The backend could not be written to (or could not be reached at all)."""

    user_message = "Storage is unavailable right now. Check the bot logs."


class DuplicateRecordError(RecruitcordError):
    """A record with the supplied id already exists."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"A {kind} record with id {record_id} already exists.")


class UnsupportedOperationError(RecruitcordError):
    """The configured backend cannot perform the requested operation."""

    user_message = "This operation is not supported by the configured storage backend."


class InvalidTransitionError(RecruitcordError):
    """
    The record exists but its current state forbids the requested change.

    Attributes:
        record_id: Id of the record the caller tried to change.
        current_state: Human readable description of the state that blocked it.
        record: The record as it is now, when the caller needs to render it.
    """

    def __init__(self, record_id: str, current_state: str, message: str, record: Any = None) -> None:
        self.record_id = record_id
        self.current_state = current_state
        self.record = record
        super().__init__(message)
