from rentroll.anomaly.models import Anomaly, AnomalyType, RiskLevel, Severity
from rentroll.anomaly.risk_flags import calculate_risk_flags


def _anomaly(
    type_: str,
    severity: str,
    field: str = "property_value",
    source: str = "BBR",
    description: str = "x",
) -> Anomaly:
    return Anomaly(type=type_, severity=severity, field=field, source=source, description=description)


class TestRiskFlags:
    def test_no_anomalies_no_flags(self) -> None:
        assert calculate_risk_flags([]) == []

    def test_multiple_high_severity(self) -> None:
        anomalies = [_anomaly(AnomalyType.DISCREPANCY, Severity.HIGH) for _ in range(3)]

        flags = calculate_risk_flags(anomalies)

        assert flags[0].type == "multiple_discrepancies"
        assert flags[0].level == RiskLevel.CRITICAL
        assert flags[0].message == "Multiple high-severity discrepancies detected (3 issues)"

    def test_value_inconsistency(self) -> None:
        anomalies = [
            _anomaly(AnomalyType.VALUE_MISMATCH, Severity.MEDIUM),
            _anomaly(AnomalyType.VALUE_MISMATCH, Severity.MEDIUM, field="property_tax", source="EJF"),
        ]

        flags = calculate_risk_flags(anomalies)

        assert [flag.type for flag in flags] == ["value_inconsistency"]
        assert flags[0].message == "Property values inconsistent across multiple sources"

    def test_missing_registrations(self) -> None:
        anomalies = [
            _anomaly(AnomalyType.MISSING_DATA, Severity.LOW, source="OIS"),
            _anomaly(AnomalyType.MISSING_DATA, Severity.LOW, source="EJF"),
        ]

        flags = calculate_risk_flags(anomalies)

        assert [flag.type for flag in flags] == ["missing_registrations"]
        assert flags[0].level == RiskLevel.MEDIUM

    def test_critical_value_mismatch_is_order_independent(self) -> None:
        tax = _anomaly(
            AnomalyType.VALUE_MISMATCH,
            Severity.HIGH,
            field="property_tax",
            source="EJF",
            description="Property tax differs by 50.0% from EJF records",
        )
        value = _anomaly(
            AnomalyType.VALUE_MISMATCH,
            Severity.HIGH,
            description="Property value differs by 30.0% from BBR records",
        )

        forward = calculate_risk_flags([tax, value])
        backward = calculate_risk_flags([value, tax])

        assert forward == backward
        assert forward[-1].type == "critical_value_mismatch"
        assert forward[-1].message == (
            "Critical value discrepancy: Property tax differs by 50.0% from EJF records"
        )
