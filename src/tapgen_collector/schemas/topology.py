"""Device topology models: groups of Modbus TCP endpoints."""

from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class DeviceEndpoint(BaseModel):
    """A configured physical device reachable over Modbus TCP."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Unique device identifier")
    host: str = Field(..., min_length=1, description="Hostname or IP address")
    port: int = Field(default=502, ge=1, le=65535, description="Modbus TCP port")
    slave_id: int = Field(
        default=1,
        ge=0,
        le=255,
        validation_alias=AliasChoices("slave_id", "slaveId", "unit_id"),
        description="Modbus unit/slave ID"
    )
    device_type: str = Field(
        ...,
        validation_alias=AliasChoices("device_type", "deviceTypeCode", "type"),
        description="Register catalog key, e.g. 'k24'"
    )


class DeviceGroup(BaseModel):
    """Devices polled together and reported as one batch."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    devices: List[DeviceEndpoint] = Field(default_factory=list)


class TopologyConfig(BaseModel):
    """All configured device groups."""
    model_config = ConfigDict(frozen=True)

    groups: List[DeviceGroup] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_names(self) -> "TopologyConfig":
        """Group names and device names must be unique; device names key connection state."""
        seen_groups = set()
        seen_devices = set()
        for group in self.groups:
            if group.name in seen_groups:
                raise ValueError(f"Duplicate group name: '{group.name}'")
            seen_groups.add(group.name)
            for device in group.devices:
                if device.name in seen_devices:
                    raise ValueError(f"Duplicate device name: '{device.name}'")
                seen_devices.add(device.name)
        return self

    def iter_devices(self):
        """Yield (group_name, endpoint) pairs in configuration order."""
        for group in self.groups:
            for device in group.devices:
                yield group.name, device
