from __future__ import annotations

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import MessageOut, WarehouseIn, WarehouseOut, WarehouseZoneIn
from ..security import require_admin


router = APIRouter(prefix="/api/warehouses", tags=["warehouses"])

_log = logging.getLogger("bigandbest.warehouses")

_WAREHOUSE_TYPES = ("central", "zonal")

_WAREHOUSE_SELECT = """
    SELECT w.id, w.name, w.type, w.location, w.address, w.is_active,
           COALESCE(array_agg(wz.zone_id ORDER BY wz.zone_id) FILTER (WHERE wz.is_active), '{}') AS zone_ids
    FROM bigandbest.warehouses w
    LEFT JOIN bigandbest.warehouse_zones wz ON wz.warehouse_id = w.id
"""


def _warehouse_out(r) -> WarehouseOut:
    return WarehouseOut(
        id=int(r["id"]),
        name=str(r["name"]),
        type=str(r["type"]),
        location=r["location"],
        address=r["address"],
        is_active=bool(r["is_active"]),
        zone_ids=[int(z) for z in (r["zone_ids"] or [])],
    )


@router.get("", response_model=List[WarehouseOut])
def list_warehouses(type: str | None = Query(None), active_only: bool = False):
    where: List[str] = []
    params: List[Any] = []
    if type:
        if type not in _WAREHOUSE_TYPES:
            raise HTTPException(status_code=400, detail=f"Invalid warehouse type. Allowed: {list(_WAREHOUSE_TYPES)}")
        where.append("w.type = %s")
        params.append(type)
    if active_only:
        where.append("w.is_active")
    where_sql = ("WHERE " + " AND ".join(where)) if where else ""

    with db_errors("Warehouse"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(_WAREHOUSE_SELECT + f" {where_sql} GROUP BY w.id ORDER BY w.type, w.id;", params)
                rows = cur.fetchall()

    return [_warehouse_out(r) for r in rows]


@router.post("", response_model=WarehouseOut, status_code=201, dependencies=[Depends(require_admin)])
def create_warehouse(req: WarehouseIn):
    wtype = req.type.strip().lower()
    if wtype not in _WAREHOUSE_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid warehouse type. Allowed: {list(_WAREHOUSE_TYPES)}")

    with db_errors("Warehouse"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO bigandbest.warehouses (
                        name, type, location, address, contact_person, contact_phone, contact_email, capacity, is_active
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id;
                    """,
                    (
                        req.name.strip(),
                        wtype,
                        req.location,
                        req.address,
                        req.contact_person,
                        req.contact_phone,
                        req.contact_email,
                        req.capacity,
                        req.is_active,
                    ),
                )
                wid = int(cur.fetchone()["id"])
                cur.execute(_WAREHOUSE_SELECT + " WHERE w.id = %s GROUP BY w.id;", (wid,))
                row = cur.fetchone()
            conn.commit()

    _log.info("warehouse created id=%s type=%s", wid, wtype)
    return _warehouse_out(row)


@router.post("/{warehouse_id}/zones", response_model=MessageOut, dependencies=[Depends(require_admin)])
def assign_zone(warehouse_id: int, req: WarehouseZoneIn):
    with db_errors("Warehouse zone"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT type FROM bigandbest.warehouses WHERE id = %s;", (warehouse_id,))
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Warehouse not found")
                if row[0] != "zonal":
                    raise HTTPException(status_code=400, detail="Only zonal warehouses can be assigned to zones")

                cur.execute(
                    """
                    INSERT INTO bigandbest.warehouse_zones (warehouse_id, zone_id, priority, is_active)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (warehouse_id, zone_id) DO UPDATE
                        SET priority = EXCLUDED.priority, is_active = EXCLUDED.is_active;
                    """,
                    (warehouse_id, req.zone_id, req.priority, req.is_active),
                )
            conn.commit()

    return MessageOut(message=f"Zone {req.zone_id} assigned to warehouse {warehouse_id}")
