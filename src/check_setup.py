"""Diagnostic report over the warehouse and zone setup.

Each check is a query whose rows are problems; an empty frame means the
check passed.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .config import PostgresConfig
from .db import get_engine


_log = logging.getLogger("bigandbest.check_setup")

CHECKS: Dict[str, str] = {
    "invalid_mapping_type": """
        SELECT warehouse_mapping_type, COUNT(*) AS products
        FROM bigandbest.products
        WHERE warehouse_mapping_type NOT IN ('nationwide', 'zonal', 'custom', 'central')
        GROUP BY 1
        ORDER BY 2 DESC
    """,
    "missing_central_warehouse": """
        SELECT 'no active central warehouse' AS problem
        WHERE NOT EXISTS (
            SELECT 1 FROM bigandbest.warehouses WHERE type = 'central' AND is_active
        )
    """,
    "zonal_without_zones": """
        SELECT w.id, w.name
        FROM bigandbest.warehouses w
        LEFT JOIN bigandbest.warehouse_zones wz ON wz.warehouse_id = w.id AND wz.is_active
        WHERE w.type = 'zonal' AND w.is_active
        GROUP BY w.id, w.name
        HAVING COUNT(wz.id) = 0
        ORDER BY w.id
    """,
    "reserved_exceeds_stock": """
        SELECT product_id, warehouse_id, stock_quantity, reserved_quantity
        FROM bigandbest.product_warehouse_stock
        WHERE reserved_quantity > stock_quantity
        ORDER BY product_id, warehouse_id
    """,
}


def run_checks(cfg: Optional[PostgresConfig] = None) -> Dict[str, pd.DataFrame]:
    engine = get_engine(cfg)
    return {name: pd.read_sql(sql, engine) for name, sql in CHECKS.items()}


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Check warehouse, zone and stock setup")
    parser.add_argument("--out", default=None, help="Optional .xlsx path for the full report")
    args = parser.parse_args()

    results = run_checks()
    failed = 0
    for name, df in results.items():
        if df.empty:
            _log.info("%s: ok", name)
            continue
        failed += 1
        _log.warning("%s: %s row(s)\n%s", name, len(df), df.to_string(index=False))

    if args.out:
        out = Path(args.out).resolve()
        out.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            for name, df in results.items():
                df.to_excel(writer, sheet_name=name[:31], index=False)
        _log.info("report written to %s", out)

    _log.info("%s of %s checks reported problems", failed, len(results))


if __name__ == "__main__":
    main()
