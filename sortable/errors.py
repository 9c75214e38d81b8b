"""Errors raised by sortable operations"""


class SortableError(Exception):
    """Base class for all ordering errors."""


class NotFoundError(SortableError):
    """A referenced record is not part of the partition."""

    def __init__(self, record_id, partition_key=None):
        self.record_id = record_id
        self.partition_key = partition_key
        if partition_key is None:
            message = f"Record '{record_id}' not found"
        else:
            message = f"Record '{record_id}' not found in partition {partition_key!r}"
        super().__init__(message)


class OutOfRangeError(SortableError):
    """A target rank or position lies outside the valid bounds."""

    def __init__(self, value: int, lower: int, upper: int):
        self.value = value
        self.lower = lower
        self.upper = upper
        super().__init__(f"Position {value} is outside the range [{lower}, {upper}]")


class ConflictError(SortableError):
    """A rank collision could not be resolved under the configured policy."""


class StoreError(SortableError):
    """The backing store failed to load or persist ranks."""
