"""
app/domain/delivery.py

Domain models shared by the import, analytics, and automation flows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Sequence

Record = Mapping[str, Any]
"""One source row: column name -> str / number / bool / None."""

NOT_FOUND_LABEL = "Not Found"

ROLE_NAMES: tuple[str, ...] = (
    "date",
    "time",
    "region",
    "total_duration",
    "order_total",
    "refund_amount",
    "restaurant_id",
    "driver_id",
    "prep_duration",
    "drive_duration",
)


class Representation(str, Enum):
    """
    Expected representation of a column's cells.
    """

    TIMESTAMP = "Timestamp"
    NUMBER = "Number"
    STRING = "String"


class Stakeholder(str, Enum):
    MERCHANT = "Merchant"
    DASHER = "Dasher"
    CUSTOMER = "Customer"


@dataclass(frozen=True)
class SchemaConfig:
    """
    Semantic role -> source column name. ``""`` means the role is unmapped.
    """

    date: str = ""
    time: str = ""
    region: str = ""
    total_duration: str = ""
    order_total: str = ""
    refund_amount: str = ""
    restaurant_id: str = ""
    driver_id: str = ""
    prep_duration: str = ""
    drive_duration: str = ""

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "SchemaConfig":
        return cls(**{role: str(mapping.get(role) or "") for role in ROLE_NAMES})

    def column_for(self, role: str) -> str:
        if role not in ROLE_NAMES:
            raise KeyError(f"Unknown semantic role '{role}'.")
        return getattr(self, role)

    def is_mapped(self, role: str) -> bool:
        return bool(self.column_for(role))

    def display(self, role: str) -> str:
        return self.column_for(role) or NOT_FOUND_LABEL

    def with_overrides(self, overrides: Mapping[str, str]) -> "SchemaConfig":
        return replace(self, **dict(overrides))

    def to_dict(self) -> dict[str, str]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


DEFAULT_SCHEMA = SchemaConfig(
    date="customerPlacedOrderDate",
    time="customerPlacedOrderTime",
    region="deliveryRegion",
    total_duration="totalDeliveryTimeMinutes",
    order_total="orderTotal",
    refund_amount="refundedAmount",
    restaurant_id="restaurantId",
    driver_id="driverId",
    prep_duration="prepTimeMinutes",
    drive_duration="driveTimeMinutes",
)
"""Column names used by the bundled demo dataset."""


@dataclass(frozen=True)
class KPISettings:
    """
    Operator-editable thresholds, passed as an immutable snapshot into
    every computation.
    """

    max_acceptable_prep_time: float = 20.0
    max_acceptable_drive_time: float = 45.0
    high_refund_threshold: float = 50.0
    late_delivery_threshold: float = 60.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ColumnProfile:
    """
    Data-quality and format summary for one source column.
    """

    name: str
    expected_representation: Representation
    observed_representation: str
    missing_count: int
    invalid_count: int
    sample_value: str
    description: str
    kpi_utility: str
    imputation_tip: str

    @property
    def is_format_valid(self) -> bool:
        return self.invalid_count == 0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["expected_representation"] = self.expected_representation.value
        payload["is_format_valid"] = self.is_format_valid
        return payload


@dataclass(frozen=True)
class ActionItem:
    """
    One actionable finding for a stakeholder, derived from a single order.
    """

    order_id: str
    stakeholder: Stakeholder
    issue_type: str
    metric_value: float
    suggested_action: str

    @property
    def item_id(self) -> str:
        return f"act-{self.stakeholder.value[0].lower()}-{self.order_id}"


@dataclass(frozen=True)
class SimulationResult:
    impacted_count: int
    estimated_cost: float
    hours_saved: float
    operational_savings: float = 0.0

    @property
    def is_positive_roi(self) -> bool:
        return self.operational_savings > self.estimated_cost


@dataclass(frozen=True)
class ImportReport:
    """
    Outcome of inferring and profiling one import batch.
    """

    records: Sequence[Record]
    column_names: tuple[str, ...]
    schema: SchemaConfig
    profiles: tuple[ColumnProfile, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.records)
