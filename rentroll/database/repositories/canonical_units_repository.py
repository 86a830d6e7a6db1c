from typing import Any

from psycopg.rows import dict_row

from rentroll.database.connection import get_connection
from rentroll.matching.models import CanonicalUnit

_SELECT_UNITS = """
    SELECT unit_id, "assetId" AS asset_id, property_name, unit_address, unit_zipcode,
           unit_floor, unit_door, size_sqm, tenant_name1, updated_at
    FROM rent_roll_unit
"""


class CanonicalUnitsRepository:
    """Read-only access to the portfolio's rent_roll_unit table."""

    def list_units(self, asset_id: str | None = None) -> list[CanonicalUnit]:
        """Return units for one asset, or the whole portfolio when asset_id is None."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                if asset_id is None:
                    cur.execute(f"{_SELECT_UNITS} ORDER BY unit_id")
                else:
                    cur.execute(
                        f'{_SELECT_UNITS} WHERE "assetId" = %s ORDER BY unit_id',
                        (asset_id,),
                    )
                rows = cur.fetchall()
        return [_row_to_unit(row) for row in rows]


def _row_to_unit(row: dict[str, Any]) -> CanonicalUnit:
    return CanonicalUnit(
        unit_id=int(row["unit_id"]),
        asset_id=str(row["asset_id"]) if row["asset_id"] is not None else None,
        property_name=row["property_name"],
        address=row["unit_address"],
        zipcode=_as_text(row["unit_zipcode"]),
        floor=_as_text(row["unit_floor"]),
        door=_as_text(row["unit_door"]),
        size_sqm=float(row["size_sqm"]) if row["size_sqm"] is not None else None,
        tenant_name=row["tenant_name1"],
        updated_at=row["updated_at"],
    )


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None
