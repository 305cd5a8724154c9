from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import psycopg
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from psycopg.rows import dict_row

from ..db import db_errors, get_conn, page_window, pagination
from ..delivery import validate_pincode, zone_allows, zones_for_pincode
from ..models import (
    MessageOut,
    PincodeValidateIn,
    PincodeValidateOut,
    ZoneDetailOut,
    ZoneIn,
    ZoneListOut,
    ZoneOut,
    ZonePincodeOut,
    ZoneStatsOut,
    ZoneUpdateIn,
    ZoneUploadOut,
)
from ..security import require_admin
from ..zone_import import (
    SAMPLE_FILENAME,
    ZoneFileError,
    build_sample_workbook,
    display_name_for,
    group_by_zone,
    parse_upload,
    validate_upload,
    validate_zone_names,
)


router = APIRouter(prefix="/api/zones", tags=["zones"])

_log = logging.getLogger("bigandbest.zones")

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_ZONE_SELECT = """
    SELECT z.id, z.name, z.display_name, z.description, z.is_nationwide, z.is_active, z.created_at,
           COUNT(zp.id) AS pincode_count,
           COALESCE(
               array_agg(DISTINCT zp.state) FILTER (WHERE COALESCE(zp.state, '') <> ''),
               '{}'
           ) AS states
    FROM bigandbest.delivery_zones z
    LEFT JOIN bigandbest.zone_pincodes zp ON zp.zone_id = z.id AND zp.is_active
"""


def _zone_out(r: Dict[str, Any]) -> ZoneOut:
    states = sorted(r.get("states") or [])
    if len(states) == 1:
        state = states[0]
    elif states:
        state = "Multiple States"
    else:
        state = None
    return ZoneOut(
        id=int(r["id"]),
        name=str(r["name"]),
        display_name=str(r["display_name"] or r["name"]),
        description=r.get("description"),
        is_nationwide=bool(r["is_nationwide"]),
        is_active=bool(r["is_active"]),
        created_at=r.get("created_at"),
        pincode_count=int(r.get("pincode_count") or 0),
        states=states,
        state=state,
    )


def _fetch_zone(cur, zone_id: int) -> Dict[str, Any]:
    cur.execute(_ZONE_SELECT + " WHERE z.id = %s GROUP BY z.id;", (zone_id,))
    row = cur.fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return row


def _check_zone_name(name: str) -> None:
    errors = validate_zone_names([name])
    if errors:
        raise HTTPException(status_code=400, detail={"error": "Invalid zone name", "details": errors})


@router.post("/upload", response_model=ZoneUploadOut, dependencies=[Depends(require_admin)])
def upload_zone_pincodes(file: UploadFile | None = File(None)):
    if file is None:
        raise HTTPException(status_code=400, detail={"error": "File validation failed", "details": ["No file uploaded"]})

    content = file.file.read()
    file_errors = validate_upload(file.filename, file.content_type, len(content))
    if file_errors:
        raise HTTPException(status_code=400, detail={"error": "File validation failed", "details": file_errors})

    try:
        parsed = parse_upload(file.filename, file.content_type, content)
    except ZoneFileError as e:
        raise HTTPException(status_code=400, detail={"error": "Failed to parse file", "details": [str(e)]})

    if parsed.errors:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "File contains errors",
                "details": parsed.errors[:50],
                "summary": parsed.summary(),
            },
        )
    if not parsed.data:
        raise HTTPException(status_code=400, detail={"error": "No valid data found in file", "details": []})

    grouped = group_by_zone(parsed.data)
    name_errors = validate_zone_names(list(grouped))
    if name_errors:
        raise HTTPException(status_code=400, detail={"error": "Invalid zone names", "details": name_errors})

    results: Dict[str, Any] = {
        "zones_created": 0,
        "zones_updated": 0,
        "pincodes_created": 0,
        "pincodes_updated": 0,
        "errors": [],
    }

    description = f"Zone created from Excel upload on {datetime.now(timezone.utc).isoformat()}"

    with db_errors("Zone"):
        with get_conn() as conn:
            for zone_name, rows in grouped.items():
                try:
                    with conn.transaction():
                        with conn.cursor() as cur:
                            cur.execute(
                                """
                                INSERT INTO bigandbest.delivery_zones (name, display_name, description, is_active)
                                VALUES (%s, %s, %s, TRUE)
                                ON CONFLICT (name) DO UPDATE
                                    SET updated_at = NOW()
                                RETURNING id, (xmax = 0) AS inserted;
                                """,
                                (zone_name, display_name_for(zone_name), description),
                            )
                            zone_id, inserted = cur.fetchone()
                            results["zones_created" if inserted else "zones_updated"] += 1

                            for row in rows:
                                cur.execute(
                                    """
                                    INSERT INTO bigandbest.zone_pincodes (zone_id, pincode, city, state, is_active)
                                    VALUES (%s, %s, %s, %s, TRUE)
                                    ON CONFLICT (zone_id, pincode) DO UPDATE
                                        SET city = EXCLUDED.city, state = EXCLUDED.state, is_active = TRUE
                                    RETURNING (xmax = 0) AS inserted;
                                    """,
                                    (int(zone_id), row.pincode, row.city or None, row.state or None),
                                )
                                created = bool(cur.fetchone()[0])
                                results["pincodes_created" if created else "pincodes_updated"] += 1
                except psycopg.OperationalError:
                    raise
                except psycopg.Error as e:
                    _log.warning("zone upload failed for zone=%s: %s", zone_name, e)
                    results["errors"].append(f"Zone {zone_name}: {e.diag.message_primary or e}")
            conn.commit()

    _log.info(
        "zone upload file=%s zones_created=%s zones_updated=%s pincodes_created=%s pincodes_updated=%s errors=%s",
        file.filename,
        results["zones_created"],
        results["zones_updated"],
        results["pincodes_created"],
        results["pincodes_updated"],
        len(results["errors"]),
    )

    return ZoneUploadOut(
        success=not results["errors"],
        message=f"Processed {parsed.valid_rows} rows across {len(grouped)} zones",
        results=results,
        parse_summary=parsed.summary(),
    )


@router.get("", response_model=ZoneListOut)
def list_zones(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: str | None = Query(None, max_length=100),
    active_only: bool = False,
):
    where: List[str] = []
    params: List[Any] = []
    if search:
        where.append("(z.name ILIKE %s OR z.display_name ILIKE %s)")
        params.extend([f"%{search}%", f"%{search}%"])
    if active_only:
        where.append("z.is_active")
    where_sql = ("WHERE " + " AND ".join(where)) if where else ""

    lim, offset = page_window(page, limit)
    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT COUNT(*) AS n FROM bigandbest.delivery_zones z {where_sql};", params)
                total = int(cur.fetchone()["n"])
                cur.execute(
                    _ZONE_SELECT + f" {where_sql} GROUP BY z.id ORDER BY z.name LIMIT %s OFFSET %s;",
                    params + [lim, offset],
                )
                rows = cur.fetchall()

    return ZoneListOut(zones=[_zone_out(r) for r in rows], pagination=pagination(page, limit, total))


@router.get("/statistics", response_model=ZoneStatsOut)
def zone_statistics():
    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                      (SELECT COUNT(*) FROM bigandbest.delivery_zones) AS total_zones,
                      (SELECT COUNT(*) FROM bigandbest.delivery_zones WHERE is_active) AS active_zones,
                      (SELECT COUNT(*) FROM bigandbest.zone_pincodes WHERE is_active) AS total_pincodes,
                      (SELECT COUNT(*) FROM bigandbest.products WHERE delivery_type = 'zonal') AS zonal_products,
                      (SELECT COUNT(*) FROM bigandbest.products WHERE delivery_type = 'nationwide') AS nationwide_products;
                    """
                )
                counts = cur.fetchone()
                cur.execute(
                    """
                    SELECT id, name, display_name, pincode_count
                    FROM bigandbest.zone_stats
                    WHERE is_active AND NOT is_nationwide
                    ORDER BY pincode_count DESC, name
                    LIMIT 5;
                    """
                )
                top = cur.fetchall()

    return ZoneStatsOut(
        total_zones=int(counts["total_zones"]),
        active_zones=int(counts["active_zones"]),
        total_pincodes=int(counts["total_pincodes"]),
        zonal_products=int(counts["zonal_products"]),
        nationwide_products=int(counts["nationwide_products"]),
        top_zones=[
            {
                "id": int(r["id"]),
                "name": r["name"],
                "display_name": r["display_name"],
                "pincode_count": int(r["pincode_count"] or 0),
            }
            for r in top
        ],
    )


@router.get("/sample-excel")
def download_sample_excel():
    return Response(
        content=build_sample_workbook(),
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{SAMPLE_FILENAME}"'},
    )


@router.post("/validate-pincode", response_model=PincodeValidateOut)
def validate_zone_pincode(req: PincodeValidateIn):
    pincode = validate_pincode(req.pincode)
    availability: List[Dict[str, Any]] = []
    with db_errors("Zone"):
        with get_conn() as conn:
            zones = zones_for_pincode(conn, pincode)
            if req.product_ids:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT id, name, delivery_type, allowed_zone_ids, active
                        FROM bigandbest.products
                        WHERE id = ANY(%s::bigint[]);
                        """,
                        (list(req.product_ids),),
                    )
                    products = {int(r["id"]): r for r in cur.fetchall()}

                for pid in req.product_ids:
                    p = products.get(int(pid))
                    if p is None:
                        availability.append({"product_id": pid, "can_deliver": False, "error": "Product not found"})
                        continue
                    ok = bool(p["active"]) and any(
                        zone_allows(p["delivery_type"], p["allowed_zone_ids"], z.zone_id) for z in zones
                    )
                    availability.append(
                        {"product_id": pid, "name": p["name"], "delivery_type": p["delivery_type"], "can_deliver": ok}
                    )

    return PincodeValidateOut(
        pincode=pincode,
        zones=zones,
        product_availability=availability,
        can_deliver=bool(zones),
    )


@router.post("", response_model=ZoneOut, dependencies=[Depends(require_admin)])
def create_zone(req: ZoneIn):
    name = req.name.strip()
    _check_zone_name(name)

    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO bigandbest.delivery_zones (name, display_name, description, is_nationwide, is_active)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id;
                    """,
                    (name, req.display_name.strip(), req.description, req.is_nationwide, req.is_active),
                )
                zone_id = int(cur.fetchone()["id"])
                row = _fetch_zone(cur, zone_id)
            conn.commit()

    _log.info("zone created id=%s name=%s", zone_id, name)
    return _zone_out(row)


@router.get("/{zone_id}", response_model=ZoneDetailOut)
def get_zone(zone_id: int):
    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                row = _fetch_zone(cur, zone_id)
                pincodes: List[Dict[str, Any]] = []
                if not row["is_nationwide"]:
                    cur.execute(
                        """
                        SELECT id, pincode, city, state, is_active
                        FROM bigandbest.zone_pincodes
                        WHERE zone_id = %s
                        ORDER BY pincode;
                        """,
                        (zone_id,),
                    )
                    pincodes = cur.fetchall()

    return ZoneDetailOut(
        zone=_zone_out(row),
        pincodes=[
            ZonePincodeOut(
                id=int(p["id"]),
                pincode=str(p["pincode"]).strip(),
                city=p["city"],
                state=p["state"],
                is_active=bool(p["is_active"]),
            )
            for p in pincodes
        ],
    )


@router.put("/{zone_id}", response_model=ZoneOut, dependencies=[Depends(require_admin)])
def update_zone(zone_id: int, req: ZoneUpdateIn):
    changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        _check_zone_name(changes["name"])
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    assignments = ", ".join(f"{col} = %s" for col in changes)
    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"UPDATE bigandbest.delivery_zones SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING id;",
                    list(changes.values()) + [zone_id],
                )
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Zone not found")
                row = _fetch_zone(cur, zone_id)
            conn.commit()

    return _zone_out(row)


@router.delete("/{zone_id}", response_model=MessageOut, dependencies=[Depends(require_admin)])
def delete_zone(zone_id: int):
    with db_errors("Zone"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, name
                    FROM bigandbest.products
                    WHERE %s::bigint = ANY(allowed_zone_ids)
                    ORDER BY id
                    LIMIT 5;
                    """,
                    (zone_id,),
                )
                in_use = cur.fetchall()
                if in_use:
                    raise HTTPException(
                        status_code=400,
                        detail={
                            "error": "Cannot delete zone",
                            "message": "Zone is assigned to products. Remove the zone from these products first.",
                            "products": [{"id": int(p["id"]), "name": p["name"]} for p in in_use],
                        },
                    )

                cur.execute("DELETE FROM bigandbest.delivery_zones WHERE id = %s RETURNING name;", (zone_id,))
                deleted = cur.fetchone()
                if deleted is None:
                    raise HTTPException(status_code=404, detail="Zone not found")
            conn.commit()

    _log.info("zone deleted id=%s name=%s", zone_id, deleted["name"])
    return MessageOut(message=f"Zone {deleted['name']} deleted successfully")
