"""Batch sink interface."""

from typing import List, Protocol, runtime_checkable

from tapgen_collector.schemas.modbus_models import Sample


@runtime_checkable
class BatchSink(Protocol):
    """
    Consumer of per-group sample batches.

    `write` is called once per group per tick with that group's complete
    batch, possibly empty, and returns the number of samples persisted.
    """

    name: str

    async def write(self, batch: List[Sample]) -> int:
        ...
