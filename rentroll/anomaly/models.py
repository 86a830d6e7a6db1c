from dataclasses import dataclass
from datetime import datetime


class AnomalyType:
    DISCREPANCY = "discrepancy"
    MISSING_DATA = "missing_data"
    VALUE_MISMATCH = "value_mismatch"
    DATE_MISMATCH = "date_mismatch"


class Severity:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel:
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Registry:
    BBR = "BBR"
    OIS = "OIS"
    EJF = "EJF"


@dataclass(frozen=True)
class PropertyProfile:
    """Property attributes stated by a document."""

    address: str | None = None
    zipcode: str | None = None
    property_value: float | None = None
    building_year: int | None = None
    total_area: float | None = None
    property_tax: float | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.address,
                self.zipcode,
                self.property_value,
                self.building_year,
                self.total_area,
                self.property_tax,
            )
        )


@dataclass(frozen=True)
class RegistrySnapshot:
    """Latest record a public registry holds for an address.

    `found=False` means the registry has no record at all.
    """

    source: str
    found: bool = True
    property_value: float | None = None
    building_year: int | None = None
    total_area: float | None = None
    property_tax: float | None = None
    last_updated: datetime | None = None


@dataclass(frozen=True)
class Anomaly:
    type: str
    severity: str
    field: str
    source: str
    description: str
    expected_value: str | None = None
    actual_value: str | None = None


@dataclass(frozen=True)
class RiskFlag:
    type: str
    level: str
    message: str
