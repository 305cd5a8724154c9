from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from backend.zone_import import SAMPLE_FILENAME, build_sample_workbook

from .config import Paths


_log = logging.getLogger("bigandbest.sample_excel")


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def write_sample_workbook(out_path: Path) -> Path:
    out_path = out_path.resolve()
    _ensure_dir(out_path.parent)
    out_path.write_bytes(build_sample_workbook())
    return out_path


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Write the sample zone/pincode upload workbook")
    default_root = Path(__file__).resolve().parents[1]
    paths = Paths(project_root=str(default_root))

    parser.add_argument("--out", default=os.path.join(paths.samples_dir, SAMPLE_FILENAME))
    args = parser.parse_args()

    out = write_sample_workbook(Path(args.out))
    _log.info("sample workbook written to %s", out)


if __name__ == "__main__":
    main()
