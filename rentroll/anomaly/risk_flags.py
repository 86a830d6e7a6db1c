from rentroll.anomaly.models import Anomaly, AnomalyType, RiskFlag, RiskLevel, Severity


def calculate_risk_flags(anomalies: list[Anomaly]) -> list[RiskFlag]:
    """Derive aggregate risk flags. The result does not depend on input order."""
    flags: list[RiskFlag] = []

    high_count = sum(1 for a in anomalies if a.severity == Severity.HIGH)
    value_mismatches = [a for a in anomalies if a.type == AnomalyType.VALUE_MISMATCH]
    missing_count = sum(1 for a in anomalies if a.type == AnomalyType.MISSING_DATA)

    if high_count >= 3:
        flags.append(
            RiskFlag(
                type="multiple_discrepancies",
                level=RiskLevel.CRITICAL,
                message=f"Multiple high-severity discrepancies detected ({high_count} issues)",
            )
        )
    if len(value_mismatches) >= 2:
        flags.append(
            RiskFlag(
                type="value_inconsistency",
                level=RiskLevel.HIGH,
                message="Property values inconsistent across multiple sources",
            )
        )
    if missing_count >= 2:
        flags.append(
            RiskFlag(
                type="missing_registrations",
                level=RiskLevel.MEDIUM,
                message="Property missing from multiple public databases",
            )
        )

    critical = sorted(
        (a for a in value_mismatches if a.severity == Severity.HIGH),
        key=lambda a: (a.field, a.source, a.description),
    )
    if critical:
        flags.append(
            RiskFlag(
                type="critical_value_mismatch",
                level=RiskLevel.CRITICAL,
                message=f"Critical value discrepancy: {critical[0].description}",
            )
        )
    return flags
