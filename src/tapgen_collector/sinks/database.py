"""Storage sink: persists sample batches into the samples time-series table."""

from typing import Any, Dict, List

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tapgen_collector.db.orm_models import SampleReading
from tapgen_collector.logger import get_logger
from tapgen_collector.schemas.modbus_models import Sample

logger = get_logger(__name__)


def sample_to_row(sample: Sample) -> Dict[str, Any]:
    return {
        "timestamp": sample.timestamp,
        "group_name": sample.group,
        "device": sample.device,
        "code": sample.code,
        "device_type": sample.device_type,
        "display_name": sample.display_name,
        "unit": sample.unit or None,
        "value": sample.value,
    }


class DatabaseSink:
    """Writes each group batch in one INSERT ... ON CONFLICT DO NOTHING statement."""

    name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def write(self, batch: List[Sample]) -> int:
        """
        Insert a batch of samples.

        Args:
            batch: Complete sample batch of one group for one tick

        Returns:
            Number of samples handed to the database, 0 on failure
        """
        if not batch:
            logger.debug("No samples to insert in batch")
            return 0

        rows = [sample_to_row(sample) for sample in batch]
        try:
            async with self._session_factory() as session:
                statement = insert(SampleReading).values(rows)
                statement = statement.on_conflict_do_nothing(
                    index_elements=["timestamp", "group_name", "device", "code"]
                )
                await session.execute(statement)
                await session.commit()
        except Exception as e:
            logger.error(
                f"Failed to store {len(rows)} sample(s) for group '{batch[0].group}' in database: {e}",
                exc_info=True
            )
            return 0

        logger.info(f"Stored {len(rows)} sample(s) for group '{batch[0].group}' in database")
        return len(rows)
