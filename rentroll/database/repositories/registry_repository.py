from typing import Any

from psycopg.rows import dict_row

from rentroll.anomaly.models import Registry, RegistrySnapshot
from rentroll.database.connection import get_connection

# source -> (table, selected columns, newest-first ordering)
_REGISTRY_QUERIES: dict[str, tuple[str, str, str]] = {
    Registry.BBR: (
        "bbr_data",
        "property_value, building_year, total_area, NULL::numeric AS property_tax, last_updated",
        "last_updated DESC NULLS LAST",
    ),
    Registry.OIS: (
        "ois_data",
        "property_value, NULL::integer AS building_year, NULL::numeric AS total_area, "
        "NULL::numeric AS property_tax, last_updated",
        "last_updated DESC NULLS LAST",
    ),
    Registry.EJF: (
        "ejf_data",
        "property_value, NULL::integer AS building_year, NULL::numeric AS total_area, "
        "property_tax, NULL::timestamptz AS last_updated",
        "year DESC",
    ),
}


class RegistryRepository:
    """Read-only lookups in the BBR, OIS and EJF registry tables."""

    SOURCES = tuple(_REGISTRY_QUERIES)

    def find_snapshot(
        self,
        source: str,
        address: str,
        zipcode: str | None = None,
    ) -> RegistrySnapshot:
        """Latest record whose address contains `address` (case-insensitive).

        Returns a snapshot with found=False when the registry has no record.
        """
        table, columns, order_by = _REGISTRY_QUERIES[source]
        conditions = ["address ILIKE %s"]
        params: list[Any] = [f"%{address.strip()}%"]
        if zipcode:
            conditions.append("zip_code = %s")
            params.append(zipcode)
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {columns}
                    FROM {table}
                    WHERE {' AND '.join(conditions)}
                    ORDER BY {order_by}
                    LIMIT 1
                    """,
                    params,
                )
                row = cur.fetchone()
        if row is None:
            return RegistrySnapshot(source=source, found=False)
        return RegistrySnapshot(
            source=source,
            property_value=_as_float(row["property_value"]),
            building_year=row["building_year"],
            total_area=_as_float(row["total_area"]),
            property_tax=_as_float(row["property_tax"]),
            last_updated=row["last_updated"],
        )

    def find_snapshots(self, address: str, zipcode: str | None = None) -> list[RegistrySnapshot]:
        return [self.find_snapshot(source, address, zipcode) for source in self.SOURCES]


def _as_float(value: Any) -> float | None:
    return float(value) if value is not None else None
