"""Compares a property profile with registry snapshots."""

from collections.abc import Iterable
from dataclasses import dataclass

from rentroll.anomaly.models import (
    Anomaly,
    AnomalyType,
    PropertyProfile,
    Registry,
    RegistrySnapshot,
    Severity,
)


@dataclass(frozen=True)
class NumericRule:
    """Relative-variance check of one profile field against one registry field."""

    field: str
    source: str
    threshold: float
    anomaly_type: str
    label: str
    unit: str = ""


NUMERIC_RULES: tuple[NumericRule, ...] = (
    NumericRule("property_value", Registry.BBR, 0.10, AnomalyType.VALUE_MISMATCH, "Property value"),
    NumericRule("total_area", Registry.BBR, 0.15, AnomalyType.DISCREPANCY, "Total area", " m²"),
    NumericRule("property_tax", Registry.EJF, 0.10, AnomalyType.VALUE_MISMATCH, "Property tax"),
)

BUILDING_YEAR_TOLERANCE = 2
BUILDING_YEAR_HIGH = 5

MISSING_REGISTRATION_MESSAGES: dict[str, str] = {
    Registry.BBR: "Property not found in BBR database - may indicate unregistered property",
    Registry.OIS: "Property not found in OIS database",
    Registry.EJF: "Property not found in EJF database",
}


def detect_anomalies(
    profile: PropertyProfile,
    snapshots: Iterable[RegistrySnapshot],
) -> list[Anomaly]:
    """Return anomalies in a fixed order: numeric rules, building year, missing registrations.

    A registry absent from `snapshots` was not consulted and yields nothing.
    """
    by_source = {snapshot.source: snapshot for snapshot in snapshots}
    anomalies: list[Anomaly] = []

    for rule in NUMERIC_RULES:
        snapshot = by_source.get(rule.source)
        if snapshot is None or not snapshot.found:
            continue
        anomaly = check_numeric(
            rule, getattr(profile, rule.field), getattr(snapshot, rule.field)
        )
        if anomaly is not None:
            anomalies.append(anomaly)

    bbr = by_source.get(Registry.BBR)
    if bbr is not None and bbr.found:
        anomaly = check_building_year(profile.building_year, bbr.building_year)
        if anomaly is not None:
            anomalies.append(anomaly)

    if profile.address:
        for source in (Registry.BBR, Registry.OIS, Registry.EJF):
            snapshot = by_source.get(source)
            if snapshot is not None and not snapshot.found:
                anomalies.append(missing_registration(source))
    return anomalies


def relative_variance(extracted: float, registry: float) -> float:
    return abs(extracted - registry) / registry


def check_numeric(
    rule: NumericRule,
    extracted: float | None,
    registry: float | None,
) -> Anomaly | None:
    if not extracted or not registry:
        return None
    variance = relative_variance(extracted, registry)
    if variance <= rule.threshold:
        return None
    return Anomaly(
        type=rule.anomaly_type,
        severity=Severity.HIGH if variance > 2 * rule.threshold else Severity.MEDIUM,
        field=rule.field,
        source=rule.source,
        expected_value=_format_number(registry, rule.unit),
        actual_value=_format_number(extracted, rule.unit),
        description=(
            f"{rule.label} differs by {variance * 100:.1f}% from {rule.source} records"
        ),
    )


def check_building_year(extracted: int | None, registry: int | None) -> Anomaly | None:
    if not extracted or not registry:
        return None
    difference = abs(extracted - registry)
    if difference <= BUILDING_YEAR_TOLERANCE:
        return None
    return Anomaly(
        type=AnomalyType.DATE_MISMATCH,
        severity=Severity.HIGH if difference > BUILDING_YEAR_HIGH else Severity.MEDIUM,
        field="building_year",
        source=Registry.BBR,
        expected_value=str(registry),
        actual_value=str(extracted),
        description=f"Building year mismatch: {difference} years difference from BBR records",
    )


def missing_registration(source: str) -> Anomaly:
    return Anomaly(
        type=AnomalyType.MISSING_DATA,
        severity=Severity.LOW,
        field=f"{source.lower()}_registration",
        source=source,
        description=MISSING_REGISTRATION_MESSAGES[source],
    )


def _format_number(value: float, unit: str) -> str:
    # Danish grouping: 10.000.000
    if unit:
        return f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".") + unit
    return f"{value:,.0f}".replace(",", ".")
