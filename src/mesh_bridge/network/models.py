"""Device model lookup: maps the model id a device reports to a known model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol


@dataclass(frozen=True)
class DeviceDefinition:
    """Metadata for a supported device model."""

    model: str
    vendor: str
    description: str
    model_ids: tuple[str, ...]


class ModelLookup(Protocol):
    def find_by_model_id(self, model_id: str) -> DeviceDefinition | None:
        ...


DEFAULT_DEFINITIONS: tuple[DeviceDefinition, ...] = (
    DeviceDefinition(
        model="WSDCGQ01LM",
        vendor="Xiaomi",
        description="MiJia temperature & humidity sensor",
        model_ids=("lumi.sens", "lumi.sensor_ht"),
    ),
    DeviceDefinition(
        model="WXKG01LM",
        vendor="Xiaomi",
        description="MiJia wireless switch",
        model_ids=("lumi.sensor_switch",),
    ),
    DeviceDefinition(
        model="MCCGQ01LM",
        vendor="Xiaomi",
        description="MiJia door & window contact sensor",
        model_ids=("lumi.sensor_magnet",),
    ),
    DeviceDefinition(
        model="9290012573A",
        vendor="Philips",
        description="Hue white and color ambiance E26/E27/E14",
        model_ids=("LCT001", "LCT007", "LCT010", "LCT015"),
    ),
    DeviceDefinition(
        model="E1524",
        vendor="IKEA",
        description="TRADFRI remote control",
        model_ids=("TRADFRI remote control",),
    ),
)


class ModelCatalog:
    """Table-backed model lookup."""

    def __init__(self, definitions: Iterable[DeviceDefinition] = DEFAULT_DEFINITIONS) -> None:
        self._by_model_id: dict[str, DeviceDefinition] = {}
        for definition in definitions:
            for model_id in definition.model_ids:
                self._by_model_id[model_id] = definition

    def find_by_model_id(self, model_id: str) -> DeviceDefinition | None:
        return self._by_model_id.get(model_id)

    def __len__(self) -> int:
        return len(self._by_model_id)
