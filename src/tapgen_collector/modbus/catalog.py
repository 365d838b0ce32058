"""
Register catalog.

Static per-device-type table of what to read and how to decode it. Device
behaviour is entirely data: the reader never branches on the device model.
"""

from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from tapgen_collector.logger import get_logger
from tapgen_collector.schemas.modbus_models import Encoding, RegisterPoint
from tapgen_collector.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class DeviceTypeInfo(NamedTuple):
    code: str
    label: str
    word_order_verified: bool = True


DEVICE_TYPES: Dict[str, DeviceTypeInfo] = {
    # K24 word order flipped between ABCD and swapped across revisions; ABCD is current
    "k24": DeviceTypeInfo("k24", "Flow meter", word_order_verified=False),
    "bs600": DeviceTypeInfo("bs600", "Differential pressure gauge"),
    "acpower": DeviceTypeInfo("acpower", "AC power meter"),
    "sui-201": DeviceTypeInfo("sui-201", "DC power meter"),
}


REGISTER_POINTS: Tuple[RegisterPoint, ...] = (
    # K24 flow meter
    RegisterPoint(device_type="k24", code="total_flow", display_name="Total flow",
                  address=0x0009, word_count=2, encoding=Encoding.INT32, scale=0.001, unit="L"),
    RegisterPoint(device_type="k24", code="avg_flow", display_name="Avg flow rate",
                  address=0x000F, word_count=2, encoding=Encoding.INT32, scale=0.01, unit="L/min"),
    RegisterPoint(device_type="k24", code="flow_rate", display_name="Flow rate",
                  address=0x0017, word_count=2, encoding=Encoding.INT32, scale=0.01, unit="L"),

    # BS600 differential pressure
    RegisterPoint(device_type="bs600", code="pressure_diff", display_name="Pressure difference",
                  address=0x0002, word_count=2, encoding=Encoding.FLOAT_SWAP, scale=1.0, unit="MPa"),

    # Single-phase AC power meter
    RegisterPoint(device_type="acpower", code="voltage", display_name="Voltage",
                  address=0x0004, word_count=1, encoding=Encoding.INT16, scale=0.1, unit="V"),
    RegisterPoint(device_type="acpower", code="current", display_name="Current",
                  address=0x0005, word_count=1, encoding=Encoding.INT16, scale=0.0001, unit="A"),
    RegisterPoint(device_type="acpower", code="active_power", display_name="Input power",
                  address=0x0000, word_count=1, encoding=Encoding.INT16, scale=0.01, unit="W"),

    # SUI-201 DC power meter
    RegisterPoint(device_type="sui-201", code="voltage", display_name="Voltage",
                  address=0x0BB8, word_count=2, encoding=Encoding.INT32, scale=0.001, unit="V"),
    RegisterPoint(device_type="sui-201", code="current", display_name="Current",
                  address=0x0BBA, word_count=2, encoding=Encoding.INT32, scale=0.001, unit="A"),
    RegisterPoint(device_type="sui-201", code="power", display_name="Power",
                  address=0x0BBC, word_count=2, encoding=Encoding.INT32, scale=0.001, unit="W"),
    RegisterPoint(device_type="sui-201", code="energy", display_name="Accumulated electricity",
                  address=0x0BBE, word_count=2, encoding=Encoding.INT32, scale=0.0001, unit="Wh"),
)


class RegisterCatalog:
    """
    Read-only lookup over a fixed set of register points.

    Built once before any poll executes and never mutated afterwards.
    """

    def __init__(self, points: Iterable[RegisterPoint]):
        by_type: Dict[str, List[RegisterPoint]] = {}
        by_key: Dict[Tuple[str, str], RegisterPoint] = {}

        for point in points:
            key = (point.device_type, point.code)
            if key in by_key:
                raise ConfigurationError(
                    f"Duplicate register point code '{point.code}' for device type '{point.device_type}'"
                )
            by_key[key] = point
            by_type.setdefault(point.device_type, []).append(point)

        self._by_type: Dict[str, Tuple[RegisterPoint, ...]] = {
            device_type: tuple(type_points) for device_type, type_points in by_type.items()
        }
        self._by_key = by_key

    def points_for(self, device_type: str) -> List[RegisterPoint]:
        """
        Get the ordered register points of a device type.

        An unknown device type yields an empty list, so a misconfigured
        device simply produces no samples.
        """
        return list(self._by_type.get(device_type, ()))

    def find(self, device_type: str, code: str) -> Optional[RegisterPoint]:
        """Look up a single point by (device_type, code)."""
        return self._by_key.get((device_type, code))

    def device_types(self) -> List[str]:
        return list(self._by_type)

    def __contains__(self, device_type: object) -> bool:
        return device_type in self._by_type

    def __iter__(self) -> Iterator[RegisterPoint]:
        for type_points in self._by_type.values():
            yield from type_points

    def __len__(self) -> int:
        return len(self._by_key)


DEFAULT_CATALOG = RegisterCatalog(REGISTER_POINTS)


def unverified_device_types(device_types: Iterable[str]) -> List[str]:
    """Return the configured device types whose word order still needs hardware verification."""
    unverified = []
    for device_type in sorted(set(device_types)):
        info = DEVICE_TYPES.get(device_type)
        if info is not None and not info.word_order_verified:
            unverified.append(device_type)
    return unverified
