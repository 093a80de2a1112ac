"""Errors raised by store backends."""
from typing import Optional


class StoreError(Exception):
    """A backend call failed; the message is what the store exposes as ``error``."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordNotFound(StoreError):
    def __init__(self, table: str, record_id):
        super().__init__(f"{table} record {record_id} not found", status_code=404)
        self.table = table
        self.record_id = record_id
