"""Exceptions raised by persistence adapters."""


class ConcurrentUpdateError(RuntimeError):
    """A conditional write lost against a concurrent writer."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record {record_id} was modified concurrently")
        self.record_id = record_id


class RecordNotFoundError(LookupError):
    """A partial update targeted a record that does not exist."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id
