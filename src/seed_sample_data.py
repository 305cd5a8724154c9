from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Tuple

from .config import PostgresConfig
from .db import get_conn


_log = logging.getLogger("bigandbest.seed")

SAMPLE_ZONES: List[Tuple[str, str, str]] = [
    ("delhi_ncr", "Delhi NCR", "Delhi National Capital Region"),
    ("mumbai", "Mumbai Metro", "Mumbai Metropolitan Area"),
    ("bangalore", "Bangalore Urban", "Bangalore Urban District"),
]

SAMPLE_PINCODES: Dict[str, List[Tuple[str, str, str]]] = {
    "delhi_ncr": [
        ("110001", "New Delhi", "Delhi"),
        ("110002", "Delhi", "Delhi"),
        ("110003", "Delhi", "Delhi"),
    ],
    "mumbai": [
        ("400001", "Mumbai", "Maharashtra"),
        ("400002", "Mumbai", "Maharashtra"),
        ("400003", "Mumbai", "Maharashtra"),
    ],
    "bangalore": [
        ("560001", "Bangalore", "Karnataka"),
        ("560002", "Bangalore", "Karnataka"),
        ("560003", "Bangalore", "Karnataka"),
    ],
}

CENTRAL_WAREHOUSE = ("Central Warehouse", "Main distribution center")
ZONAL_WAREHOUSE = ("Delhi Zonal Hub", "Delhi NCR", "delhi_ncr")


def seed(cfg: PostgresConfig) -> Dict[str, int]:
    counts = {"zones": 0, "pincodes": 0, "warehouses": 0, "warehouse_zones": 0}
    with get_conn(cfg) as conn:
        with conn.cursor() as cur:
            zone_ids: Dict[str, int] = {}
            for name, display_name, description in SAMPLE_ZONES:
                cur.execute(
                    """
                    INSERT INTO bigandbest.delivery_zones (name, display_name, description, is_nationwide, is_active)
                    VALUES (%s, %s, %s, FALSE, TRUE)
                    ON CONFLICT (name) DO UPDATE SET
                        display_name = EXCLUDED.display_name,
                        description = EXCLUDED.description,
                        updated_at = NOW()
                    RETURNING id;
                    """,
                    (name, display_name, description),
                )
                zone_ids[name] = int(cur.fetchone()[0])
                counts["zones"] += 1

            for zone_name, rows in SAMPLE_PINCODES.items():
                for pincode, city, state in rows:
                    cur.execute(
                        """
                        INSERT INTO bigandbest.zone_pincodes (zone_id, pincode, city, state, is_active)
                        VALUES (%s, %s, %s, %s, TRUE)
                        ON CONFLICT (zone_id, pincode) DO UPDATE SET
                            city = EXCLUDED.city,
                            state = EXCLUDED.state,
                            is_active = TRUE;
                        """,
                        (zone_ids[zone_name], pincode, city, state),
                    )
                    counts["pincodes"] += 1

            cur.execute(
                """
                INSERT INTO bigandbest.warehouses (name, type, location, is_active)
                VALUES (%s, 'central', %s, TRUE)
                ON CONFLICT (name) DO UPDATE SET location = EXCLUDED.location, updated_at = NOW()
                RETURNING id;
                """,
                CENTRAL_WAREHOUSE,
            )
            cur.fetchone()
            counts["warehouses"] += 1

            hub_name, hub_location, hub_zone = ZONAL_WAREHOUSE
            cur.execute(
                """
                INSERT INTO bigandbest.warehouses (name, type, location, is_active)
                VALUES (%s, 'zonal', %s, TRUE)
                ON CONFLICT (name) DO UPDATE SET location = EXCLUDED.location, updated_at = NOW()
                RETURNING id;
                """,
                (hub_name, hub_location),
            )
            hub_id = int(cur.fetchone()[0])
            counts["warehouses"] += 1

            cur.execute(
                """
                INSERT INTO bigandbest.warehouse_zones (warehouse_id, zone_id, priority, is_active)
                VALUES (%s, %s, 1, TRUE)
                ON CONFLICT (warehouse_id, zone_id) DO UPDATE SET is_active = TRUE;
                """,
                (hub_id, zone_ids[hub_zone]),
            )
            counts["warehouse_zones"] += 1
        conn.commit()
    return counts


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Seed sample delivery zones, pincodes and warehouses")
    parser.parse_args()

    counts = seed(PostgresConfig())
    _log.info(
        "seeded zones=%s pincodes=%s warehouses=%s warehouse_zones=%s",
        counts["zones"],
        counts["pincodes"],
        counts["warehouses"],
        counts["warehouse_zones"],
    )


if __name__ == "__main__":
    main()
