"""
CSV export sink.

Appends one row per group per tick to a daily CSV file. The column set of a
group is fixed from the topology and the register catalog so rows written
on the same day always line up, even when a device misses a tick.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from tapgen_collector.logger import get_logger
from tapgen_collector.modbus.catalog import RegisterCatalog
from tapgen_collector.schemas.modbus_models import Sample
from tapgen_collector.schemas.topology import DeviceGroup

logger = get_logger(__name__)

TIME_COLUMN = "time"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
EXPORT_SUBDIR = "data_export"


def column_name(device: str, code: str) -> str:
    return f"{device}_{code}"


class CsvExportSink:
    """Daily per-group CSV files under `<base_dir>/data_export`."""

    name = "csv_export"

    def __init__(
        self,
        base_dir: Union[str, Path],
        groups: Iterable[DeviceGroup],
        catalog: RegisterCatalog
    ):
        self.export_dir = Path(base_dir) / EXPORT_SUBDIR
        self._columns: Dict[str, List[str]] = {}
        for group in groups:
            columns = [TIME_COLUMN]
            for device in group.devices:
                for point in catalog.points_for(device.device_type):
                    columns.append(column_name(device.name, point.code))
            self._columns[group.name] = columns
        self._locks: Dict[str, asyncio.Lock] = {}

    def columns_for(self, group: str) -> List[str]:
        return list(self._columns.get(group, [TIME_COLUMN]))

    def file_path(self, group: str, day: datetime) -> Path:
        return self.export_dir / f"device_data_{group}_{day.strftime('%Y%m%d')}.csv"

    async def write(self, batch: List[Sample]) -> int:
        """
        Append the batch as one row of its group's daily file.

        Args:
            batch: Complete sample batch of one group for one tick

        Returns:
            Number of samples written, 0 when nothing was written
        """
        if not batch:
            logger.warning("Sample batch is empty, nothing to export")
            return 0

        group = batch[0].group
        timestamp = min(sample.timestamp for sample in batch)
        columns = self._columns.get(group)
        if columns is None:
            columns = [TIME_COLUMN] + [column_name(s.device, s.code) for s in batch]
            logger.warning(f"Group '{group}' is not in the export topology, using batch columns")

        row: Dict[str, Optional[Any]] = {TIME_COLUMN: timestamp.strftime(TIME_FORMAT)}
        for sample in batch:
            row[column_name(sample.device, sample.code)] = sample.value

        path = self.file_path(group, timestamp)
        lock = self._locks.setdefault(group, asyncio.Lock())
        try:
            async with lock:
                await asyncio.to_thread(self._append_row, path, columns, row)
        except Exception as e:
            logger.error(f"Failed to write CSV file {path}: {e}", exc_info=True)
            return 0

        logger.info(
            f"CSV row appended: {timestamp.strftime('%H:%M:%S')} -> {len(batch)} value(s), file: {path}"
        )
        return len(batch)

    @staticmethod
    def _append_row(path: Path, columns: List[str], row: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        is_new = not path.exists()
        frame = pd.DataFrame([row], columns=columns)
        # BOM only on creation so spreadsheet tools detect UTF-8
        frame.to_csv(
            path,
            mode="a",
            header=is_new,
            index=False,
            encoding="utf-8-sig" if is_new else "utf-8",
        )
        if is_new:
            logger.info(f"Created CSV file {path} with {len(columns)} column(s)")
